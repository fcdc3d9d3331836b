'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 10:40:00
 #  Modified time: 2025-11-03 10:40:00
 #  Description: Coordinate transforms between raw anchor encodings and boxes.
 #  Description (Legacy): Decoding is used at inference and for the objectness IoU
 #       target; encoding produces the raw regression targets for training.
'''

from __future__ import annotations

import math
from typing import Sequence, Tuple

import torch

from .errors import InvalidInputError

Box = Tuple[float, float, float, float]

OFFSET_EPS = 1e-6


def squash(values: torch.Tensor) -> torch.Tensor:
    """Logistic sigmoid mapping raw logits into ``(0, 1)``."""
    return torch.sigmoid(values)


def class_probabilities(logits: torch.Tensor) -> torch.Tensor:
    """Softmax over the last axis with the max logit subtracted first."""
    shifted = logits - logits.amax(dim=-1, keepdim=True)
    return torch.softmax(shifted, dim=-1)


def correction_factors(width: float, height: float) -> Tuple[float, float]:
    """Aspect-ratio correction for an image letterboxed into a ``max(width, height)`` square."""
    if width <= 0 or height <= 0:
        raise InvalidInputError(f"Reshaped image dimensions must be positive, got {width}x{height}")
    input_size = float(max(width, height))
    return input_size / float(width), input_size / float(height)


def decode(
    row: int,
    col: int,
    anchor: int,
    raw4: Sequence[float] | torch.Tensor,
    anchor_prior: Tuple[float, float],
    num_cells: int,
    correction_x: float = 1.0,
    correction_y: float = 1.0,
) -> Box:
    """Decode slot ``(row, col, anchor)``'s ``(tx, ty, tw, th)`` into a relative ``(x1, y1, x2, y2)`` box."""
    _check_slot(row, col, anchor, num_cells)
    tx, ty, tw, th = torch.as_tensor(raw4, dtype=torch.float64).reshape(4)
    center_x = (col + squash(tx)) / num_cells * correction_x
    center_y = (row + squash(ty)) / num_cells * correction_y
    width = torch.exp(tw) * anchor_prior[0] / num_cells * correction_x
    height = torch.exp(th) * anchor_prior[1] / num_cells * correction_y
    return (
        float(center_x - width / 2.0),
        float(center_y - height / 2.0),
        float(center_x + width / 2.0),
        float(center_y + height / 2.0),
    )


def decode_grid(
    raw: torch.Tensor,
    anchors: torch.Tensor,
    correction_x: float = 1.0,
    correction_y: float = 1.0,
) -> torch.Tensor:
    """Vectorized :func:`decode` over a ``(N, N, A, >=4)`` grid, returning ``(N, N, A, 4)`` boxes."""
    num_cells = raw.shape[0]
    rows = torch.arange(num_cells, device=raw.device, dtype=raw.dtype).view(num_cells, 1, 1)
    cols = torch.arange(num_cells, device=raw.device, dtype=raw.dtype).view(1, num_cells, 1)
    anchors = anchors.to(device=raw.device, dtype=raw.dtype)

    center_x = (cols + squash(raw[..., 0])) / num_cells * correction_x
    center_y = (rows + squash(raw[..., 1])) / num_cells * correction_y
    width = torch.exp(raw[..., 2]) * anchors[:, 0] / num_cells * correction_x
    height = torch.exp(raw[..., 3]) * anchors[:, 1] / num_cells * correction_y

    return torch.stack(
        [
            center_x - width / 2.0,
            center_y - height / 2.0,
            center_x + width / 2.0,
            center_y + height / 2.0,
        ],
        dim=-1,
    )


def encode_target(
    box: Box,
    row: int,
    col: int,
    anchor: int,
    anchor_prior: Tuple[float, float],
    num_cells: int,
    correction_x: float = 1.0,
    correction_y: float = 1.0,
) -> Tuple[float, float, float, float]:
    """Inverse of :func:`decode`: the raw ``(tx, ty, tw, th)`` that decodes back to ``box``.

    The in-cell offset is clamped to ``[OFFSET_EPS, 1 - OFFSET_EPS]`` so that a center lying
    exactly on a cell border still yields a finite logit.
    """
    _check_slot(row, col, anchor, num_cells)
    x1, y1, x2, y2 = (float(value) for value in box)
    width = x2 - x1
    height = y2 - y1
    if width <= 0.0 or height <= 0.0:
        raise InvalidInputError(f"Cannot encode a box with non-positive extent at slot {(row, col, anchor)}: {box}")

    center_x_cells = (x1 + x2) / 2.0 / correction_x * num_cells
    center_y_cells = (y1 + y2) / 2.0 / correction_y * num_cells
    tx = _logit(center_x_cells - col)
    ty = _logit(center_y_cells - row)
    tw = math.log(width / correction_x * num_cells / anchor_prior[0])
    th = math.log(height / correction_y * num_cells / anchor_prior[1])
    return tx, ty, tw, th


def paired_box_iou(boxes1: torch.Tensor, boxes2: torch.Tensor) -> torch.Tensor:
    """Elementwise IoU between corresponding xyxy boxes of shape ``(..., 4)``."""
    area1 = (boxes1[..., 2] - boxes1[..., 0]).clamp(min=0) * (boxes1[..., 3] - boxes1[..., 1]).clamp(min=0)
    area2 = (boxes2[..., 2] - boxes2[..., 0]).clamp(min=0) * (boxes2[..., 3] - boxes2[..., 1]).clamp(min=0)

    lt = torch.max(boxes1[..., :2], boxes2[..., :2])
    rb = torch.min(boxes1[..., 2:], boxes2[..., 2:])
    wh = (rb - lt).clamp(min=0)
    inter = wh[..., 0] * wh[..., 1]

    union = area1 + area2 - inter
    return inter / union.clamp(min=1e-9)


def _check_slot(row: int, col: int, anchor: int, num_cells: int) -> None:
    if not (0 <= row < num_cells and 0 <= col < num_cells) or anchor < 0:
        raise InvalidInputError(f"Slot {(row, col, anchor)} lies outside a {num_cells}x{num_cells} grid")


def _logit(offset: float) -> float:
    clamped = min(max(offset, OFFSET_EPS), 1.0 - OFFSET_EPS)
    return math.log(clamped / (1.0 - clamped))


__all__ = [
    "Box",
    "squash",
    "class_probabilities",
    "correction_factors",
    "decode",
    "decode_grid",
    "encode_target",
    "paired_box_iou",
]
