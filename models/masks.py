'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 11:45:00
 #  Modified time: 2025-11-03 11:45:00
 #  Description: Loss masks and dense targets for the Tiny YOLOv2 loss.
 #  Description (Legacy): Every objectness slot belongs to exactly one of the
 #       object / no-object terms; geometry and class terms are only charged at
 #       slots that were assigned a ground-truth box.
'''

from __future__ import annotations

from typing import Sequence, Tuple

import torch

from .anchors import AnchorGrid
from .box_codec import correction_factors, encode_target
from .results import Dimensions
from .targets import Assignment, LossMasks, LossTargets


class LossMaskBuilder:
    """Builds :class:`LossMasks` and :class:`LossTargets` from anchor assignments."""

    def __init__(self, grid: AnchorGrid) -> None:
        self.grid = grid

    def _empty(self, num_cells: int, device: torch.device | None, dtype: torch.dtype) -> torch.Tensor:
        shape = (num_cells, num_cells, self.grid.num_anchors, self.grid.box_encoding_size)
        return torch.zeros(shape, device=device, dtype=dtype)

    def ground_truth_mask(
        self,
        assignments: Sequence[Assignment],
        num_cells: int,
        *,
        device: torch.device | None = None,
        dtype: torch.dtype = torch.float32,
    ) -> torch.Tensor:
        """1.0 across every channel of each assigned slot."""
        mask = self._empty(num_cells, device, dtype)
        for assignment in assignments:
            mask[assignment.row, assignment.col, assignment.anchor, :] = 1.0
        return mask

    def channel_masks(
        self,
        num_cells: int,
        *,
        device: torch.device | None = None,
        dtype: torch.dtype = torch.float32,
    ) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
        """Static ``(coord, score, class)`` channel selectors over the whole grid."""
        coord_mask = self._empty(num_cells, device, dtype)
        coord_mask[..., 0:4] = 1.0
        score_mask = self._empty(num_cells, device, dtype)
        score_mask[..., 4] = 1.0
        class_mask = self._empty(num_cells, device, dtype)
        if self.grid.with_class_scores:
            class_mask[..., 5:] = 1.0
        return coord_mask, score_mask, class_mask

    def build_masks(
        self,
        assignments: Sequence[Assignment],
        num_cells: int,
        *,
        device: torch.device | None = None,
        dtype: torch.dtype = torch.float32,
    ) -> LossMasks:
        ground_truth = self.ground_truth_mask(assignments, num_cells, device=device, dtype=dtype)
        coord_mask, score_mask, class_mask = self.channel_masks(num_cells, device=device, dtype=dtype)
        return LossMasks(
            object_mask=score_mask * ground_truth,
            no_object_mask=score_mask * (1.0 - ground_truth),
            coord_mask=coord_mask * ground_truth,
            class_mask=class_mask * ground_truth,
        )

    def build_targets(
        self,
        assignments: Sequence[Assignment],
        num_cells: int,
        reshaped_dims: Tuple[int, int],
        *,
        device: torch.device | None = None,
        dtype: torch.dtype = torch.float32,
    ) -> LossTargets:
        width, height = Dimensions(*reshaped_dims)
        correction_x, correction_y = correction_factors(width, height)

        coords = self._empty(num_cells, device, dtype)
        class_one_hot = self._empty(num_cells, device, dtype)
        for assignment in assignments:
            slot = (assignment.row, assignment.col, assignment.anchor)
            coords[slot + (slice(0, 4),)] = torch.tensor(
                encode_target(
                    assignment.box,
                    assignment.row,
                    assignment.col,
                    assignment.anchor,
                    self.grid.anchors[assignment.anchor],
                    num_cells,
                    correction_x,
                    correction_y,
                ),
                device=device,
                dtype=dtype,
            )
            if self.grid.with_class_scores:
                class_one_hot[slot + (5 + assignment.label,)] = 1.0
        return LossTargets(coords=coords, class_one_hot=class_one_hot)


__all__ = ["LossMaskBuilder"]
