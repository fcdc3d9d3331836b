'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-01 11:55:00
 #  Modified time: 2025-11-03 12:10:00
 #  Description: Loss builders for the Tiny YOLOv2 detection model.
 #  Description (Legacy): Implements the four-term squared-error YOLOv2 loss with
 #       anchor assignment and IoU-based objectness targets.
'''

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

import torch
from torch import nn

from .anchors import AnchorGrid
from .assigner import GroundTruthAssigner
from .box_codec import class_probabilities, correction_factors, decode_grid, paired_box_iou, squash
from .config import DetectorConfig, LossScales
from .errors import InvalidInputError
from .masks import LossMaskBuilder
from .results import Dimensions
from .targets import Assignment, GroundTruthBox

LOGGER = logging.getLogger("tiny_yolov2.losses")


@dataclass
class LossBreakdown:
    """Individual loss terms and their sum, each a 0-d tensor."""

    no_object_loss: torch.Tensor
    object_loss: torch.Tensor
    coord_loss: torch.Tensor
    class_loss: torch.Tensor
    total_loss: torch.Tensor

    def as_dict(self) -> Dict[str, float]:
        return {
            "no_object_loss": float(self.no_object_loss.detach().item()),
            "object_loss": float(self.object_loss.detach().item()),
            "coord_loss": float(self.coord_loss.detach().item()),
            "class_loss": float(self.class_loss.detach().item()),
            "total_loss": float(self.total_loss.detach().item()),
        }


class TinyYoloV2Loss(nn.Module):
    """Squared-error YOLOv2 loss over a single ``(N, N, A, E)`` output grid."""

    def __init__(self, grid: AnchorGrid, scales: LossScales, *, collision_policy: str = "last") -> None:
        super().__init__()
        self.grid = grid
        self.scales = scales
        self.assigner = GroundTruthAssigner(grid, collision_policy=collision_policy)
        self.mask_builder = LossMaskBuilder(grid)

    def forward(  # noqa: D401
        self,
        raw: torch.Tensor,
        ground_truth: Sequence[GroundTruthBox],
        reshaped_dims: Tuple[int, int],
        *,
        layout: str = "nchw",
    ) -> LossBreakdown:
        """Loss for one image. ``raw`` is the network output, read according to ``layout``."""
        dims = Dimensions(*reshaped_dims)
        if max(dims.width, dims.height) <= 0:
            raise InvalidInputError(f"Invalid input size for loss computation: {dims}")

        output = self.grid.reshape_output(raw, layout)
        num_cells = output.shape[0]
        device, dtype = output.device, output.dtype

        assignments = self.assigner(ground_truth, dims, num_cells)
        masks = self.mask_builder.build_masks(assignments, num_cells, device=device, dtype=dtype)
        targets = self.mask_builder.build_targets(assignments, num_cells, dims, device=device, dtype=dtype)

        no_object_loss = self._term(self.scales.no_object_scale, masks.no_object_mask, squash(output))

        iou_targets = self._iou_targets(output, assignments, dims)
        object_loss = self._term(self.scales.object_scale, masks.object_mask, iou_targets - squash(output))

        coord_loss = self._term(self.scales.coord_scale, masks.coord_mask, targets.coords - output)

        if self.grid.with_class_scores:
            class_residual = targets.class_one_hot[..., 5:] - class_probabilities(output[..., 5:])
            class_loss = self._term(self.scales.class_scale, masks.class_mask[..., 5:], class_residual)
        else:
            class_loss = output.new_tensor(0.0)

        total_loss = no_object_loss + object_loss + coord_loss + class_loss
        breakdown = LossBreakdown(
            no_object_loss=no_object_loss,
            object_loss=object_loss,
            coord_loss=coord_loss,
            class_loss=class_loss,
            total_loss=total_loss,
        )
        LOGGER.debug("Loss for %d assigned boxes: %s", len(assignments), breakdown.as_dict())
        return breakdown

    @staticmethod
    def _term(scale: float, mask: torch.Tensor, residual: torch.Tensor) -> torch.Tensor:
        return scale * torch.sum(torch.square(mask * residual))

    @torch.no_grad()
    def _iou_targets(
        self,
        output: torch.Tensor,
        assignments: Sequence[Assignment],
        dims: Dimensions,
    ) -> torch.Tensor:
        """IoU between each assigned slot's current prediction and its ground truth, at channel 4."""
        iou_targets = torch.zeros_like(output)
        if not assignments:
            return iou_targets

        correction_x, correction_y = correction_factors(dims.width, dims.height)
        anchors = self.grid.anchor_tensor(device=output.device, dtype=output.dtype)
        predicted = decode_grid(output.detach(), anchors, correction_x, correction_y)

        rows = torch.tensor([a.row for a in assignments], device=output.device)
        cols = torch.tensor([a.col for a in assignments], device=output.device)
        anchor_ids = torch.tensor([a.anchor for a in assignments], device=output.device)
        truth = torch.tensor([a.box for a in assignments], device=output.device, dtype=output.dtype)

        ious = paired_box_iou(predicted[rows, cols, anchor_ids], truth)
        iou_targets[rows, cols, anchor_ids, 4] = ious
        return iou_targets


def build_loss(config: DetectorConfig) -> TinyYoloV2Loss:
    return TinyYoloV2Loss(
        AnchorGrid.from_config(config),
        config.loss_scales,
        collision_policy=config.collision_policy,
    )


__all__ = ["LossBreakdown", "TinyYoloV2Loss", "build_loss"]
