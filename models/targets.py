'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-01 11:55:00
 #  Modified time: 2025-11-03 11:05:00
 #  Description: Shared dataclasses for Tiny YOLOv2 training targets.
 #  Description (Legacy): Provides structured containers for ground truth,
 #       anchor assignments and the masks/targets consumed by the loss.
'''

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import torch


@dataclass(frozen=True)
class GroundTruthBox:
    """Ground-truth box ``(x1, y1, x2, y2)`` relative to the image extent, plus its class label."""

    box: Tuple[float, float, float, float]
    label: int = 0


@dataclass(frozen=True)
class Assignment:
    """A ground-truth box bound to one ``(row, col, anchor)`` slot.

    Attributes:
        row, col, anchor: Slot claimed by the ground truth.
        box: Ground-truth box relative to the reshaped image.
        pixel_box: The same box in reshaped-image pixels.
        label: Class label of the ground truth.
        anchor_iou: Shape IoU between the box and the selected anchor prior.
    """

    row: int
    col: int
    anchor: int
    box: Tuple[float, float, float, float]
    pixel_box: Tuple[float, float, float, float]
    label: int
    anchor_iou: float

    @property
    def slot(self) -> Tuple[int, int, int]:
        return self.row, self.col, self.anchor


@dataclass
class LossMasks:
    """Indicator tensors shaped like the ``(N, N, A, E)`` raw output.

    Attributes:
        object_mask: 1.0 at the objectness channel of assigned slots.
        no_object_mask: 1.0 at the objectness channel of every other slot.
        coord_mask: 1.0 at the four geometry channels of assigned slots.
        class_mask: 1.0 at the class channels of assigned slots (all zero without class scores).
    """

    object_mask: torch.Tensor
    no_object_mask: torch.Tensor
    coord_mask: torch.Tensor
    class_mask: torch.Tensor


@dataclass
class LossTargets:
    """Dense regression and classification targets shaped like the raw output.

    Attributes:
        coords: Raw ``(tx, ty, tw, th)`` targets in channels 0-3 of assigned slots.
        class_one_hot: One-hot labels in channels 5.. of assigned slots.
    """

    coords: torch.Tensor
    class_one_hot: torch.Tensor


__all__ = ["GroundTruthBox", "Assignment", "LossMasks", "LossTargets"]
