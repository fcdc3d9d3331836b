'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 15:40:00
 #  Modified time: 2025-11-03 15:40:00
 #  Description: Unit tests for the Tiny YOLOv2 training loss.
 #  Description (Legacy): Ensures every loss term is non-negative, vanishes for a
 #       perfect prediction and propagates gradients to the raw output.
'''

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import torch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from models import AnchorGrid, ConfigurationError, GroundTruthBox, LossScales, TinyYoloV2Loss  # noqa: E402
from models.box_codec import encode_target  # noqa: E402

ANCHORS = ((1.0, 1.0), (3.0, 3.0))


def _loss(num_classes: int = 1, with_class_scores: bool = False, **scales: float) -> TinyYoloV2Loss:
    grid = AnchorGrid(anchors=ANCHORS, num_classes=num_classes, with_class_scores=with_class_scores)
    return TinyYoloV2Loss(grid, LossScales(**scales))


def test_perfect_prediction_has_near_zero_loss() -> None:
    loss_fn = _loss()
    num_cells = 4
    truth = GroundTruthBox(box=(0.2, 0.5, 0.4, 0.7), label=0)

    raw = torch.zeros(num_cells, num_cells, 2, 5, dtype=torch.float64)
    raw[..., 4] = -30.0
    # center (38.4, 76.8) px in a 128 px image: cell (row 2, col 1), anchor 0 fits best
    raw[2, 1, 0, :4] = torch.tensor(encode_target(truth.box, 2, 1, 0, ANCHORS[0], num_cells), dtype=torch.float64)
    raw[2, 1, 0, 4] = 30.0

    breakdown = loss_fn(raw, [truth], (128, 128), layout="grid")
    values = breakdown.as_dict()
    assert values["coord_loss"] == pytest.approx(0.0, abs=1e-12)
    assert values["object_loss"] == pytest.approx(0.0, abs=1e-10)
    assert values["no_object_loss"] == pytest.approx(0.0, abs=1e-10)
    assert values["class_loss"] == 0.0
    assert values["total_loss"] == pytest.approx(0.0, abs=1e-9)


def test_loss_terms_are_non_negative_and_sum_to_total() -> None:
    torch.manual_seed(7)
    loss_fn = _loss(num_classes=3, with_class_scores=True)
    truths = [
        GroundTruthBox(box=(0.05, 0.05, 0.30, 0.40), label=0),
        GroundTruthBox(box=(0.50, 0.55, 0.95, 0.90), label=2),
        GroundTruthBox(box=(0.60, 0.10, 0.70, 0.25), label=1),
    ]
    for _ in range(5):
        raw = torch.randn(1, 2 * 8, 5, 5) * 3.0
        breakdown = loss_fn(raw, truths, (160, 120))
        for name in ("no_object_loss", "object_loss", "coord_loss", "class_loss"):
            assert getattr(breakdown, name).item() >= 0.0
        total = breakdown.no_object_loss + breakdown.object_loss + breakdown.coord_loss + breakdown.class_loss
        assert breakdown.total_loss.item() == pytest.approx(total.item())
        assert breakdown.class_loss.item() > 0.0


def test_loss_propagates_gradients_to_raw_output() -> None:
    torch.manual_seed(3)
    loss_fn = _loss(num_classes=2, with_class_scores=True)
    raw = torch.randn(4, 4, 2, 7, requires_grad=True)
    breakdown = loss_fn(raw, [GroundTruthBox(box=(0.3, 0.3, 0.6, 0.7), label=1)], (128, 128), layout="grid")
    breakdown.total_loss.backward()

    assert raw.grad is not None
    assert torch.isfinite(raw.grad).all()
    assert raw.grad.abs().sum().item() > 0.0


def test_class_loss_is_zero_without_class_scores() -> None:
    loss_fn = _loss()
    raw = torch.randn(4, 4, 2, 5)
    breakdown = loss_fn(raw, [GroundTruthBox(box=(0.3, 0.3, 0.6, 0.7))], (128, 128), layout="grid")
    assert breakdown.class_loss.item() == 0.0


def test_no_ground_truth_only_charges_no_object_term() -> None:
    loss_fn = _loss()
    raw = torch.zeros(4, 4, 2, 5)
    breakdown = loss_fn(raw, [], (128, 128), layout="grid")
    # every objectness slot predicts 0.5
    assert breakdown.no_object_loss.item() == pytest.approx(4 * 4 * 2 * 0.25)
    assert breakdown.object_loss.item() == 0.0
    assert breakdown.coord_loss.item() == 0.0


def test_scales_weight_each_term() -> None:
    torch.manual_seed(11)
    raw = torch.randn(4, 4, 2, 5)
    truths = [GroundTruthBox(box=(0.3, 0.3, 0.6, 0.7))]
    base = _loss()(raw, truths, (128, 128), layout="grid")
    scaled = _loss(no_object_scale=2.0, object_scale=0.0, coord_scale=3.0)(raw, truths, (128, 128), layout="grid")

    assert scaled.no_object_loss.item() == pytest.approx(2.0 * base.no_object_loss.item())
    assert scaled.object_loss.item() == 0.0
    assert scaled.coord_loss.item() == pytest.approx(3.0 * base.coord_loss.item())


def test_object_target_is_prediction_iou() -> None:
    loss_fn = _loss(object_scale=1.0)
    truth = GroundTruthBox(box=(0.2, 0.5, 0.4, 0.7), label=0)
    raw = torch.zeros(4, 4, 2, 5, dtype=torch.float64)
    raw[..., 4] = -40.0
    # zero offsets decode to a 32x32 box centered in cell (2, 1): (0.25..0.5, 0.5..0.75) relative
    breakdown = loss_fn(raw, [truth], (128, 128), layout="grid")

    intersection = (0.4 - 0.25) * (0.7 - 0.5)
    union = 0.25 * 0.25 + 0.2 * 0.2 - intersection
    assert breakdown.object_loss.item() == pytest.approx((intersection / union) ** 2, rel=1e-6)


def test_negative_scale_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        LossScales(coord_scale=-1.0)


@pytest.mark.parametrize(
    "anchors, input_size",
    [
        (ANCHORS, 320),  # N == A * E == 10
        (((1.0, 1.0), (2.0, 2.0), (3.0, 3.0), (4.0, 4.0), (5.0, 5.0)), 160),  # N == A == E == 5
    ],
)
def test_loss_reads_network_output_as_nchw(anchors, input_size) -> None:
    grid = AnchorGrid(anchors=anchors, num_classes=1, with_class_scores=False)
    loss_fn = TinyYoloV2Loss(grid, LossScales())
    num_cells = input_size // 32
    # a 28 px box centered at (114, 84) px: cell (row 2, col 3), best matched by the 32 px anchor
    truth = GroundTruthBox(
        box=(100.0 / input_size, 70.0 / input_size, 128.0 / input_size, 98.0 / input_size),
        label=0,
    )

    values = torch.zeros(num_cells, num_cells, len(anchors), 5, dtype=torch.float64)
    values[..., 4] = -30.0
    values[2, 3, 0, :4] = torch.tensor(encode_target(truth.box, 2, 3, 0, anchors[0], num_cells), dtype=torch.float64)
    values[2, 3, 0, 4] = 30.0
    nchw = values.reshape(num_cells, num_cells, -1).permute(2, 0, 1).unsqueeze(0)

    breakdown = loss_fn(nchw, [truth], (input_size, input_size))
    assert breakdown.total_loss.item() == pytest.approx(0.0, abs=1e-9)

    as_grid = loss_fn(values, [truth], (input_size, input_size), layout="grid")
    assert as_grid.total_loss.item() == pytest.approx(breakdown.total_loss.item(), abs=1e-12)
