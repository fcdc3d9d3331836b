'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 10:20:00
 #  Modified time: 2025-11-03 10:20:00
 #  Description: Static grid geometry and anchor priors for the Tiny YOLOv2 head.
'''

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import torch

from .config import OUTPUT_LAYOUTS, DetectorConfig
from .errors import ConfigurationError, InvalidInputError


@dataclass(frozen=True)
class AnchorGrid:
    """Anchor priors (in grid-cell units) and the per-slot box encoding width."""

    anchors: Tuple[Tuple[float, float], ...]
    num_classes: int
    with_class_scores: bool

    def __post_init__(self) -> None:
        if not self.anchors:
            raise ConfigurationError("AnchorGrid requires at least one anchor")
        for width, height in self.anchors:
            if width <= 0.0 or height <= 0.0:
                raise ConfigurationError(f"Anchor extents must be positive, got ({width}, {height})")
        if self.with_class_scores and self.num_classes <= 0:
            raise ConfigurationError("num_classes must be positive when class scores are enabled")

    @classmethod
    def from_config(cls, config: DetectorConfig) -> "AnchorGrid":
        return cls(
            anchors=config.anchors,
            num_classes=config.num_classes,
            with_class_scores=config.uses_class_scores,
        )

    @property
    def num_anchors(self) -> int:
        return len(self.anchors)

    @property
    def box_encoding_size(self) -> int:
        return 5 + (self.num_classes if self.with_class_scores else 0)

    def anchor_tensor(self, *, device: torch.device | None = None, dtype: torch.dtype = torch.float32) -> torch.Tensor:
        """Anchors as an ``(A, 2)`` tensor of (width, height)."""
        return torch.tensor(self.anchors, dtype=dtype, device=device)

    def num_cells(self, raw: torch.Tensor, layout: str = "nchw") -> int:
        return int(self.reshape_output(raw, layout).shape[0])

    def reshape_output(self, raw: torch.Tensor, layout: str = "nchw") -> torch.Tensor:
        """Normalize a raw output to ``(N, N, A, E)``.

        ``layout`` states how ``raw`` is arranged; the leading batch axis of size one is optional
        for the first two:
            * ``"nchw"`` - ``(1, A * E, N, N)``, the tensor emitted by the convolutional head.
            * ``"nhwc"`` - ``(1, N, N, A * E)``, channels last.
            * ``"grid"`` - ``(N, N, A, E)``, already split per anchor.
        """
        if layout not in OUTPUT_LAYOUTS:
            raise InvalidInputError(f"Unknown output layout '{layout}', expected one of {OUTPUT_LAYOUTS}")

        if layout == "grid":
            if raw.dim() != 4 or raw.shape[2:] != (self.num_anchors, self.box_encoding_size):
                raise InvalidInputError(
                    f"Expected a (N, N, {self.num_anchors}, {self.box_encoding_size}) grid, got {tuple(raw.shape)}"
                )
            grid = raw
        else:
            if raw.dim() == 4:
                if raw.shape[0] != 1:
                    raise InvalidInputError(f"Expected a single image output, got batch of {raw.shape[0]}")
                raw = raw[0]
            elif raw.dim() != 3:
                raise InvalidInputError(f"Unsupported output tensor rank {raw.dim()} with shape {tuple(raw.shape)}")
            if layout == "nchw":
                raw = raw.permute(1, 2, 0)
            grid = self._from_channels_last(raw, self.num_anchors * self.box_encoding_size)

        if grid.shape[0] != grid.shape[1]:
            raise InvalidInputError(f"Output grid must be square, got {grid.shape[0]}x{grid.shape[1]}")
        return grid

    def _from_channels_last(self, raw: torch.Tensor, channels: int) -> torch.Tensor:
        if raw.shape[-1] != channels:
            raise InvalidInputError(
                f"Expected {channels} output channels ({self.num_anchors} anchors x "
                f"{self.box_encoding_size} values), got {raw.shape[-1]}"
            )
        height, width = raw.shape[0], raw.shape[1]
        return raw.reshape(height, width, self.num_anchors, self.box_encoding_size)


__all__ = ["AnchorGrid"]
