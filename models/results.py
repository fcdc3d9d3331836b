'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 11:00:00
 #  Modified time: 2025-11-03 11:00:00
 #  Description: Result containers produced by the Tiny YOLOv2 inference path.
'''

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, NamedTuple, Tuple

from .errors import InvalidInputError


class Dimensions(NamedTuple):
    width: int
    height: int


@dataclass(frozen=True)
class DecodedBox:
    """A decoded slot: box relative to the reshaped image plus its grid origin."""

    box: Tuple[float, float, float, float]
    score: float
    class_label: int
    row: int
    col: int
    anchor: int

    def rescale(self, size: float) -> Tuple[float, float, float, float]:
        x1, y1, x2, y2 = self.box
        return x1 * size, y1 * size, x2 * size, y2 * size


@dataclass(frozen=True)
class ObjectDetection:
    """Final detection reported in the coordinate space of the original image."""

    score: float
    class_label: int
    class_name: str
    relative_box: Tuple[float, float, float, float]
    image_dims: Dimensions

    @property
    def box(self) -> Tuple[float, float, float, float]:
        x1, y1, x2, y2 = self.relative_box
        width, height = self.image_dims
        return x1 * width, y1 * height, x2 * width, y2 * height

    def for_size(self, width: int, height: int) -> "ObjectDetection":
        if width <= 0 or height <= 0:
            raise InvalidInputError(f"Image dimensions must be positive, got {width}x{height}")
        return replace(self, image_dims=Dimensions(int(width), int(height)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "class_label": self.class_label,
            "class_name": self.class_name,
            "box": list(self.box),
            "image_size": [self.image_dims.width, self.image_dims.height],
        }


__all__ = ["Dimensions", "DecodedBox", "ObjectDetection"]
