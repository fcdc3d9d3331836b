'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 11:20:00
 #  Modified time: 2025-11-03 11:20:00
 #  Description: Ground-truth to anchor assignment for Tiny YOLOv2 training.
 #  Description (Legacy): Each ground-truth box is bound to the grid cell holding
 #       its center and to the anchor prior whose shape overlaps it best.
'''

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import torch

from .anchors import AnchorGrid
from .config import CELL_SIZE, COLLISION_POLICIES
from .errors import ConfigurationError, InvalidInputError
from .results import Dimensions
from .targets import Assignment, GroundTruthBox

LOGGER = logging.getLogger("tiny_yolov2.assigner")


class GroundTruthAssigner:
    """Assigns every ground-truth box to exactly one ``(row, col, anchor)`` slot.

    When two boxes claim the same slot, ``collision_policy`` decides which one survives:
    ``"last"`` keeps the box processed last, ``"best_iou"`` keeps the one whose shape
    matches the anchor prior better (the later box wins ties).
    """

    def __init__(self, grid: AnchorGrid, *, collision_policy: str = "last") -> None:
        if collision_policy not in COLLISION_POLICIES:
            raise ConfigurationError(
                f"collision_policy must be one of {COLLISION_POLICIES}, got '{collision_policy}'"
            )
        self.grid = grid
        self.collision_policy = collision_policy
        self._anchors = grid.anchor_tensor(dtype=torch.float64)

    def __call__(
        self,
        ground_truth: Sequence[GroundTruthBox],
        reshaped_dims: Tuple[int, int],
        num_cells: Optional[int] = None,
    ) -> List[Assignment]:
        width, height = Dimensions(*reshaped_dims)
        if width <= 0 or height <= 0:
            raise InvalidInputError(f"Reshaped image dimensions must be positive, got {width}x{height}")
        input_size = float(max(width, height))
        if num_cells is None:
            num_cells = int(input_size // CELL_SIZE)
        if num_cells <= 0:
            raise InvalidInputError(f"Grid must have at least one cell, got {num_cells} for input size {input_size}")
        cell_size = input_size / num_cells

        assigned: Dict[Tuple[int, int, int], Assignment] = {}
        for index, truth in enumerate(ground_truth):
            assignment = self._assign_one(index, truth, width, height, input_size, cell_size, num_cells)
            previous = assigned.get(assignment.slot)
            if previous is None:
                assigned[assignment.slot] = assignment
                continue
            if self.collision_policy == "best_iou" and previous.anchor_iou > assignment.anchor_iou:
                LOGGER.warning(
                    "Ground truth #%d collides with an earlier box at slot %s; keeping the earlier box (iou %.3f > %.3f)",
                    index,
                    assignment.slot,
                    previous.anchor_iou,
                    assignment.anchor_iou,
                )
                continue
            LOGGER.warning(
                "Ground truth #%d overwrites an earlier box at slot %s (policy '%s')",
                index,
                assignment.slot,
                self.collision_policy,
            )
            assigned[assignment.slot] = assignment

        return list(assigned.values())

    def _assign_one(
        self,
        index: int,
        truth: GroundTruthBox,
        width: int,
        height: int,
        input_size: float,
        cell_size: float,
        num_cells: int,
    ) -> Assignment:
        x1, y1, x2, y2 = (float(value) for value in truth.box)
        pixel_box = (x1 * width, y1 * height, x2 * width, y2 * height)
        box_width = pixel_box[2] - pixel_box[0]
        box_height = pixel_box[3] - pixel_box[1]
        if box_width <= 0.0 or box_height <= 0.0:
            raise InvalidInputError(f"Ground truth #{index} has non-positive extent: {truth.box}")

        label = int(truth.label)
        if self.grid.with_class_scores and not 0 <= label < self.grid.num_classes:
            raise InvalidInputError(
                f"Ground truth #{index} label {label} outside [0, {self.grid.num_classes})"
            )

        center_x = pixel_box[0] + box_width / 2.0
        center_y = pixel_box[1] + box_height / 2.0
        if not (0.0 <= center_x < input_size and 0.0 <= center_y < input_size):
            raise InvalidInputError(
                f"Ground truth #{index} center ({center_x:.2f}, {center_y:.2f}) lies outside the "
                f"{input_size:.0f}x{input_size:.0f} grid"
            )
        col = self._clamp_index(math.floor(center_x / cell_size), num_cells)
        row = self._clamp_index(math.floor(center_y / cell_size), num_cells)

        box_wh = torch.tensor([box_width, box_height], dtype=torch.float64)
        ious = self._wh_iou(box_wh, self._anchors * cell_size).tolist()
        # first maximum wins so ties resolve to the lowest anchor index
        best_anchor = max(range(len(ious)), key=ious.__getitem__)

        return Assignment(
            row=row,
            col=col,
            anchor=best_anchor,
            box=(x1, y1, x2, y2),
            pixel_box=pixel_box,
            label=label,
            anchor_iou=float(ious[best_anchor]),
        )

    @staticmethod
    def _wh_iou(box_wh: torch.Tensor, anchors: torch.Tensor) -> torch.Tensor:
        inter = torch.minimum(box_wh, anchors)
        inter_area = inter[:, 0] * inter[:, 1]
        box_area = box_wh[0] * box_wh[1]
        anchor_area = anchors[:, 0] * anchors[:, 1]
        return inter_area / (box_area + anchor_area - inter_area)

    @staticmethod
    def _clamp_index(index: int, max_size: int) -> int:
        return max(0, min(max_size - 1, index))


__all__ = ["GroundTruthAssigner"]
