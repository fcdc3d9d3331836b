'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-10-31 11:20:00
 #  Modified time: 2025-11-03 12:30:00
 #  Description: Backbone implementations and registry for Tiny YOLOv2 models.
 #  Description (Legacy): Provides the nine-layer Tiny YOLOv2 feature extractor,
 #       optionally built from depthwise-separable convolutions, ending in the
 #       1x1 detection convolution that emits the raw anchor encodings.
'''

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

import torch
from torch import nn

LOGGER = logging.getLogger("tiny_yolov2.models")


@dataclass
class BackboneSpec:
    """Descriptor holding a backbone module and its output channel dimension."""

    module: nn.Module
    out_channels: int


class ConvBlock(nn.Module):
    """3x3 convolution with BatchNorm and leaky ReLU."""

    def __init__(self, in_channels: int, out_channels: int, *, separable: bool = False) -> None:
        super().__init__()
        if separable:
            conv: nn.Module = nn.Sequential(
                nn.Conv2d(in_channels, in_channels, kernel_size=3, padding=1, groups=in_channels, bias=False),
                nn.Conv2d(in_channels, out_channels, kernel_size=1, bias=False),
            )
        else:
            conv = nn.Conv2d(in_channels, out_channels, kernel_size=3, padding=1, bias=False)
        self.block = nn.Sequential(
            conv,
            nn.BatchNorm2d(out_channels),
            nn.LeakyReLU(0.1, inplace=True),
        )

    def forward(self, tensor: torch.Tensor) -> torch.Tensor:  # noqa: D401 - inherits docs
        return self.block(tensor)


class SamePadMaxPool(nn.Module):
    """2x2 max-pool with TensorFlow-style ``same`` padding."""

    def __init__(self, stride: int) -> None:
        super().__init__()
        self.stride = stride
        # stride 1 keeps the spatial size, so pad one row/column at the bottom-right
        self.pad = nn.ZeroPad2d((0, 1, 0, 1)) if stride == 1 else nn.Identity()
        self.pool = nn.MaxPool2d(kernel_size=2, stride=stride, ceil_mode=True)

    def forward(self, tensor: torch.Tensor) -> torch.Tensor:  # noqa: D401
        return self.pool(self.pad(tensor))


class TinyYoloV2Backbone(nn.Module):
    """Tiny YOLOv2 network: eight conv stages and a 1x1 detection convolution.

    A ``S x S`` input yields a ``(B, num_outputs, S / 32, S / 32)`` tensor.
    """

    def __init__(
        self,
        in_channels: int = 3,
        num_outputs: int = 125,
        base_channels: int = 16,
        separable: bool = False,
    ) -> None:
        super().__init__()
        if num_outputs <= 0:
            raise ValueError("num_outputs must be positive")
        if base_channels <= 0:
            raise ValueError("base_channels must be positive")

        widths = [base_channels * (2 ** index) for index in range(6)] + [base_channels * 64] * 2
        pool_strides = [2, 2, 2, 2, 2, 1, None, None]
        layers: List[nn.Module] = []
        channels = in_channels
        for width, stride in zip(widths, pool_strides, strict=True):
            # the stem always uses a regular convolution
            layers.append(ConvBlock(channels, width, separable=separable and channels != in_channels))
            if stride is not None:
                layers.append(SamePadMaxPool(stride))
            channels = width
        self.features = nn.Sequential(*layers)
        self.detector = nn.Conv2d(channels, num_outputs, kernel_size=1)
        self._out_channels = num_outputs

    @property
    def out_channels(self) -> int:
        return self._out_channels

    def forward(self, tensor: torch.Tensor) -> torch.Tensor:  # noqa: D401
        return self.detector(self.features(tensor))


_BACKBONE_REGISTRY: Dict[str, Any] = {
    "tiny_yolov2": TinyYoloV2Backbone,
}


def register_backbone(name: str, constructor: Any) -> None:
    if name in _BACKBONE_REGISTRY:
        raise ValueError(f"Backbone '{name}' already registered")
    _BACKBONE_REGISTRY[name] = constructor
    LOGGER.info("Registered backbone '%s'", name)


def build_backbone(
    *,
    name: str,
    input_channels: int,
    num_outputs: int,
    separable: bool = False,
    **kwargs: Any,
) -> BackboneSpec:
    constructor = _BACKBONE_REGISTRY.get(name)
    if constructor is None:
        raise ValueError(f"Unknown backbone '{name}'")

    if name == "tiny_yolov2":
        base_channels = int(kwargs.get("base_channels", 16))
        module = constructor(
            in_channels=input_channels,
            num_outputs=num_outputs,
            base_channels=base_channels,
            separable=separable,
        )
    else:
        module = constructor(in_channels=input_channels, num_outputs=num_outputs, separable=separable, **kwargs)

    if not hasattr(module, "out_channels"):
        raise AttributeError(f"Backbone '{name}' must expose an 'out_channels' attribute")
    out_channels = int(getattr(module, "out_channels"))
    if out_channels != num_outputs:
        raise ValueError(f"Backbone '{name}' emits {out_channels} channels, expected {num_outputs}")
    return BackboneSpec(module=module, out_channels=out_channels)
