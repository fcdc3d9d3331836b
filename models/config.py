'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 10:10:00
 #  Modified time: 2025-11-03 10:10:00
 #  Description: Immutable configuration values for the Tiny YOLOv2 detector.
 #  Description (Legacy): Holds anchors, class names, normalization values and loss
 #       scales, plus the forward-pass parameters and named input-size presets.
'''

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from .errors import ConfigurationError, InvalidInputError

CELL_SIZE = 32

INPUT_SIZES: Dict[str, int] = {
    "xs": 224,
    "sm": 320,
    "md": 416,
    "lg": 608,
}

COLLISION_POLICIES = ("last", "best_iou")

# nchw: (1, A * E, N, N) as emitted by the backbone; nhwc: (1, N, N, A * E); grid: (N, N, A, E)
OUTPUT_LAYOUTS = ("nchw", "nhwc", "grid")

DEFAULT_LOSS_SCALES: Dict[str, float] = {
    "no_object_scale": 1.0,
    "object_scale": 5.0,
    "coord_scale": 1.0,
    "class_scale": 1.0,
}


@dataclass(frozen=True)
class LossScales:
    """Weights applied to the four squared-error loss terms."""

    no_object_scale: float = 1.0
    object_scale: float = 5.0
    coord_scale: float = 1.0
    class_scale: float = 1.0

    def __post_init__(self) -> None:
        for name in DEFAULT_LOSS_SCALES:
            value = float(getattr(self, name))
            if value < 0.0:
                raise ConfigurationError(f"{name} must be non-negative, got {value}")
            object.__setattr__(self, name, value)

    @classmethod
    def from_config(cls, raw_config: Optional[Dict[str, Any]]) -> "LossScales":
        merged: Dict[str, Any] = {**DEFAULT_LOSS_SCALES, **(raw_config or {})}
        return cls(**{name: float(merged[name]) for name in DEFAULT_LOSS_SCALES})


@dataclass(frozen=True)
class DetectorConfig:
    """Normalized configuration for a Tiny YOLOv2 detector instance."""

    anchors: Tuple[Tuple[float, float], ...]
    classes: Tuple[str, ...]
    with_class_scores: bool = False
    mean_rgb: Optional[Tuple[float, float, float]] = None
    iou_threshold: float = 0.4
    with_separable_convs: bool = False
    backbone: str = "tiny_yolov2"
    backbone_params: Dict[str, Any] = field(default_factory=dict)
    loss_scales: LossScales = field(default_factory=LossScales)
    collision_policy: str = "last"
    checkpoint_path: Optional[Path] = None

    def __post_init__(self) -> None:
        anchors = tuple((float(w), float(h)) for w, h in self.anchors)
        if not anchors:
            raise ConfigurationError("At least one anchor must be configured")
        for width, height in anchors:
            if width <= 0.0 or height <= 0.0:
                raise ConfigurationError(f"Anchor extents must be positive, got ({width}, {height})")
        object.__setattr__(self, "anchors", anchors)

        classes = tuple(str(name) for name in self.classes)
        if not classes:
            raise ConfigurationError("At least one class name must be configured")
        object.__setattr__(self, "classes", classes)

        if self.mean_rgb is not None:
            mean_rgb = tuple(float(value) for value in self.mean_rgb)
            if len(mean_rgb) != 3:
                raise ConfigurationError("mean_rgb must hold exactly three values")
            object.__setattr__(self, "mean_rgb", mean_rgb)

        if not 0.0 <= float(self.iou_threshold) <= 1.0:
            raise ConfigurationError(f"iou_threshold must lie in [0, 1], got {self.iou_threshold}")
        if self.collision_policy not in COLLISION_POLICIES:
            raise ConfigurationError(
                f"collision_policy must be one of {COLLISION_POLICIES}, got '{self.collision_policy}'"
            )
        if self.checkpoint_path is not None and not isinstance(self.checkpoint_path, Path):
            object.__setattr__(self, "checkpoint_path", Path(self.checkpoint_path))

    @property
    def num_classes(self) -> int:
        return len(self.classes)

    @property
    def uses_class_scores(self) -> bool:
        return self.with_class_scores or self.num_classes > 1

    @property
    def box_encoding_size(self) -> int:
        return 5 + (self.num_classes if self.uses_class_scores else 0)

    @classmethod
    def from_config(cls, raw_config: Dict[str, Any]) -> "DetectorConfig":
        model_section = raw_config.get("model", {}) if "model" in raw_config else raw_config
        anchors = model_section.get("anchors")
        if not anchors:
            raise ConfigurationError("model.anchors must be a non-empty list of [width, height] pairs")
        classes = model_section.get("classes") or []
        mean_rgb = model_section.get("mean_rgb")
        checkpoint = model_section.get("checkpoint_path")
        return cls(
            anchors=tuple(_parse_anchor(anchor) for anchor in anchors),
            classes=tuple(classes),
            with_class_scores=bool(model_section.get("with_class_scores", False)),
            mean_rgb=tuple(mean_rgb) if mean_rgb is not None else None,
            iou_threshold=float(model_section.get("iou_threshold", 0.4)),
            with_separable_convs=bool(model_section.get("with_separable_convs", False)),
            backbone=str(model_section.get("backbone", "tiny_yolov2")),
            backbone_params=dict(model_section.get("backbone_params", {})),
            loss_scales=LossScales.from_config(model_section.get("loss")),
            collision_policy=str(model_section.get("collision_policy", "last")),
            checkpoint_path=Path(checkpoint).expanduser() if checkpoint else None,
        )


@dataclass(frozen=True)
class ForwardParams:
    """Per-call inference options."""

    input_size: Union[int, str] = 416
    score_threshold: Optional[float] = 0.5

    @classmethod
    def from_config(cls, raw_config: Optional[Dict[str, Any]]) -> "ForwardParams":
        section = dict(raw_config or {})
        threshold = section.get("score_threshold", 0.5)
        return cls(
            input_size=section.get("input_size", 416),
            score_threshold=float(threshold) if threshold is not None else None,
        )


def resolve_input_size(input_size: Union[int, str]) -> int:
    """Map a numeric size or a named preset onto a pixel size usable by the network."""
    if isinstance(input_size, str):
        if input_size not in INPUT_SIZES:
            raise ConfigurationError(
                f"Unknown input_size '{input_size}', expected a number or one of {sorted(INPUT_SIZES)}"
            )
        return INPUT_SIZES[input_size]
    if isinstance(input_size, bool) or not isinstance(input_size, (int, float)):
        raise InvalidInputError(f"input_size must be numeric or a preset name, got {input_size!r}")
    size = int(input_size)
    if size <= 0 or size != input_size:
        raise InvalidInputError(f"input_size must be a positive integer, got {input_size}")
    if size % CELL_SIZE != 0:
        raise InvalidInputError(f"input_size must be a multiple of {CELL_SIZE}, got {size}")
    return size


def _parse_anchor(anchor: Union[Sequence[float], Dict[str, float]]) -> Tuple[float, float]:
    if isinstance(anchor, dict):
        return float(anchor["x"]), float(anchor["y"])
    if len(anchor) != 2:
        raise ConfigurationError(f"Anchor must be a [width, height] pair, got {anchor!r}")
    return float(anchor[0]), float(anchor[1])


__all__ = [
    "CELL_SIZE",
    "INPUT_SIZES",
    "COLLISION_POLICIES",
    "OUTPUT_LAYOUTS",
    "DEFAULT_LOSS_SCALES",
    "LossScales",
    "DetectorConfig",
    "ForwardParams",
    "resolve_input_size",
]
