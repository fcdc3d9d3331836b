'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 15:20:00
 #  Modified time: 2025-11-03 15:20:00
 #  Description: Unit tests for ground-truth assignment and loss mask construction.
'''

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest
import torch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from models import AnchorGrid, ConfigurationError, GroundTruthBox, InvalidInputError  # noqa: E402
from models.assigner import GroundTruthAssigner  # noqa: E402
from models.masks import LossMaskBuilder  # noqa: E402

VOC_ANCHORS = ((1.08, 1.19), (3.42, 4.41), (6.63, 11.38), (9.42, 5.11), (16.62, 10.52))
INPUT_SIZE = 416
CELL = 32.0


def _anchor_box(anchor: int, row: int, col: int) -> GroundTruthBox:
    width, height = (value * CELL for value in VOC_ANCHORS[anchor])
    center_x = (col + 0.5) * CELL
    center_y = (row + 0.5) * CELL
    return GroundTruthBox(
        box=(
            (center_x - width / 2) / INPUT_SIZE,
            (center_y - height / 2) / INPUT_SIZE,
            (center_x + width / 2) / INPUT_SIZE,
            (center_y + height / 2) / INPUT_SIZE,
        ),
        label=0,
    )


def _grid(num_classes: int = 1, with_class_scores: bool = False) -> AnchorGrid:
    return AnchorGrid(anchors=VOC_ANCHORS, num_classes=num_classes, with_class_scores=with_class_scores)


def test_anchor_grid_geometry() -> None:
    grid = _grid(num_classes=20, with_class_scores=True)
    assert grid.num_anchors == 5
    assert grid.box_encoding_size == 25
    assert _grid().box_encoding_size == 5

    nchw = torch.zeros(1, 5 * 25, 13, 13)
    assert grid.reshape_output(nchw).shape == (13, 13, 5, 25)
    assert grid.reshape_output(nchw[0]).shape == (13, 13, 5, 25)
    assert grid.num_cells(torch.zeros(1, 13, 13, 125), layout="nhwc") == 13
    assert grid.num_cells(torch.zeros(13, 13, 5, 25), layout="grid") == 13


@pytest.mark.parametrize(
    "num_anchors, input_size",
    [
        (2, 320),  # grid size equals the channel count: N == A * E == 10
        (5, 160),  # N == A == E == 5
    ],
)
def test_reshape_output_follows_declared_layout(num_anchors, input_size) -> None:
    anchors = tuple((1.0 + index, 1.0 + index) for index in range(num_anchors))
    grid = AnchorGrid(anchors=anchors, num_classes=1, with_class_scores=False)
    cells = input_size // 32
    values = torch.arange(cells * cells * num_anchors * 5, dtype=torch.float32).reshape(cells, cells, num_anchors, 5)
    channels_last = values.reshape(cells, cells, num_anchors * 5)
    nchw = channels_last.permute(2, 0, 1).unsqueeze(0)

    assert torch.equal(grid.reshape_output(nchw), values)
    assert torch.equal(grid.reshape_output(nchw, "nchw"), values)
    assert torch.equal(grid.reshape_output(channels_last.unsqueeze(0), "nhwc"), values)
    assert torch.equal(grid.reshape_output(values, "grid"), values)


def test_anchor_grid_rejects_bad_configuration() -> None:
    with pytest.raises(ConfigurationError):
        AnchorGrid(anchors=(), num_classes=1, with_class_scores=False)
    with pytest.raises(ConfigurationError):
        AnchorGrid(anchors=((1.0, 0.0),), num_classes=1, with_class_scores=False)
    with pytest.raises(ConfigurationError):
        AnchorGrid(anchors=((1.0, 1.0),), num_classes=0, with_class_scores=True)


def test_anchor_grid_rejects_mismatched_output() -> None:
    grid = _grid()
    with pytest.raises(InvalidInputError):
        grid.reshape_output(torch.zeros(1, 24, 13, 13))
    with pytest.raises(InvalidInputError):
        grid.reshape_output(torch.zeros(13, 12, 25), "nhwc")
    with pytest.raises(InvalidInputError):
        grid.reshape_output(torch.zeros(2, 25, 13, 13))
    with pytest.raises(InvalidInputError):
        grid.reshape_output(torch.zeros(1, 25, 13, 13), "grid")
    with pytest.raises(InvalidInputError):
        grid.reshape_output(torch.zeros(25, 13), "nchw")
    with pytest.raises(InvalidInputError):
        grid.reshape_output(torch.zeros(1, 25, 13, 13), "nchw_guess")


def test_assigns_centered_box_to_matching_anchor() -> None:
    assigner = GroundTruthAssigner(_grid())
    assignments = assigner([_anchor_box(2, 6, 6)], (INPUT_SIZE, INPUT_SIZE), 13)

    assert len(assignments) == 1
    assignment = assignments[0]
    assert assignment.slot == (6, 6, 2)
    assert assignment.anchor_iou == pytest.approx(1.0)
    assert assignment.pixel_box[0] == pytest.approx(6.5 * CELL - VOC_ANCHORS[2][0] * CELL / 2)


def test_grid_size_defaults_to_input_size_over_cell_size() -> None:
    assigner = GroundTruthAssigner(_grid())
    assignments = assigner([_anchor_box(0, 12, 0)], (INPUT_SIZE, INPUT_SIZE))
    assert assignments[0].slot == (12, 0, 0)


def test_letterboxed_ground_truth_uses_reshaped_pixels() -> None:
    assigner = GroundTruthAssigner(_grid())
    # a 416x208 image: the relative box centered at (0.5, 0.5) lands at pixel (208, 104)
    truth = GroundTruthBox(box=(0.45, 0.45, 0.55, 0.55), label=0)
    assignment = assigner([truth], (416, 208), 13)[0]
    assert (assignment.row, assignment.col) == (3, 6)
    assert assignment.pixel_box == pytest.approx((187.2, 93.6, 228.8, 114.4))


def test_collision_keeps_last_box_by_default(caplog) -> None:
    assigner = GroundTruthAssigner(_grid())
    first = _anchor_box(2, 6, 6)
    x1, y1, x2, y2 = first.box
    second = GroundTruthBox(box=(x1 + 0.01, y1, x2 + 0.01, y2), label=0)

    with caplog.at_level(logging.WARNING, logger="tiny_yolov2.assigner"):
        assignments = assigner([first, second], (INPUT_SIZE, INPUT_SIZE), 13)

    assert len(assignments) == 1
    assert assignments[0].slot == (6, 6, 2)
    assert assignments[0].box == second.box
    assert "overwrites" in caplog.text


def test_collision_best_iou_keeps_better_matching_box() -> None:
    assigner = GroundTruthAssigner(_grid(), collision_policy="best_iou")
    exact = _anchor_box(2, 6, 6)
    x1, y1, x2, y2 = exact.box
    # same center and anchor, slightly narrower so its anchor IoU is lower
    narrower = GroundTruthBox(box=(x1 + 0.01, y1, x2 - 0.01, y2), label=0)

    assignments = assigner([exact, narrower], (INPUT_SIZE, INPUT_SIZE), 13)
    assert len(assignments) == 1
    assert assignments[0].box == exact.box

    reversed_order = assigner([narrower, exact], (INPUT_SIZE, INPUT_SIZE), 13)
    assert reversed_order[0].box == exact.box


def test_unknown_collision_policy_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        GroundTruthAssigner(_grid(), collision_policy="first")


def test_rejects_center_outside_grid() -> None:
    assigner = GroundTruthAssigner(_grid())
    with pytest.raises(InvalidInputError):
        assigner([GroundTruthBox(box=(0.95, 0.4, 1.15, 0.6))], (INPUT_SIZE, INPUT_SIZE), 13)


def test_rejects_zero_area_box() -> None:
    assigner = GroundTruthAssigner(_grid())
    with pytest.raises(InvalidInputError):
        assigner([GroundTruthBox(box=(0.4, 0.4, 0.4, 0.6))], (INPUT_SIZE, INPUT_SIZE), 13)


def test_rejects_label_outside_class_range() -> None:
    assigner = GroundTruthAssigner(_grid(num_classes=3, with_class_scores=True))
    with pytest.raises(InvalidInputError):
        assigner([GroundTruthBox(box=(0.4, 0.4, 0.6, 0.6), label=3)], (INPUT_SIZE, INPUT_SIZE), 13)


@pytest.mark.parametrize("num_cells, num_classes, with_class_scores", [(13, 1, False), (7, 3, True), (1, 2, True)])
def test_object_and_no_object_masks_partition_score_slots(num_cells, num_classes, with_class_scores) -> None:
    grid = _grid(num_classes=num_classes, with_class_scores=with_class_scores)
    size = num_cells * 32
    assigner = GroundTruthAssigner(grid)
    truths = [
        GroundTruthBox(box=(0.1, 0.1, 0.3, 0.3), label=0),
        GroundTruthBox(box=(0.5, 0.6, 0.9, 0.95), label=num_classes - 1),
    ]
    assignments = assigner(truths, (size, size), num_cells)
    masks = LossMaskBuilder(grid).build_masks(assignments, num_cells)

    combined = masks.object_mask + masks.no_object_mask
    assert torch.equal(combined[..., 4], torch.ones(num_cells, num_cells, 5))
    assert combined[..., :4].sum().item() == 0.0
    assert combined[..., 5:].sum().item() == 0.0
    assert masks.object_mask.sum().item() == len(assignments)


def test_coord_and_class_masks_cover_only_assigned_slots() -> None:
    grid = _grid(num_classes=3, with_class_scores=True)
    assigner = GroundTruthAssigner(grid)
    assignments = assigner([_anchor_box(2, 6, 6)], (INPUT_SIZE, INPUT_SIZE), 13)
    masks = LossMaskBuilder(grid).build_masks(assignments, 13)

    assert masks.coord_mask.sum().item() == 4.0
    assert torch.equal(masks.coord_mask[6, 6, 2, :4], torch.ones(4))
    assert masks.class_mask.sum().item() == 3.0
    assert torch.equal(masks.class_mask[6, 6, 2, 5:], torch.ones(3))
    assert masks.coord_mask[..., 4:].sum().item() == 0.0


def test_targets_hold_raw_coordinates_and_one_hot_labels() -> None:
    grid = _grid(num_classes=3, with_class_scores=True)
    truth = _anchor_box(2, 6, 6)
    truth = GroundTruthBox(box=truth.box, label=1)
    assignments = GroundTruthAssigner(grid)([truth], (INPUT_SIZE, INPUT_SIZE), 13)
    targets = LossMaskBuilder(grid).build_targets(assignments, 13, (INPUT_SIZE, INPUT_SIZE))

    assert targets.coords[6, 6, 2, :4].tolist() == pytest.approx([0.0, 0.0, 0.0, 0.0], abs=1e-5)
    assert targets.class_one_hot[6, 6, 2, 5:].tolist() == [0.0, 1.0, 0.0]
    assert targets.class_one_hot.sum().item() == 1.0
