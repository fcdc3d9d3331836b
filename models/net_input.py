'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 13:00:00
 #  Modified time: 2025-11-03 13:00:00
 #  Description: Network input preparation: letterbox resizing and batching.
 #  Description (Legacy): Images keep their aspect ratio; the longer side is scaled to the
 #       network input size and the remainder of the square is zero-padded at the bottom/right.
'''

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence, Union

import cv2
import numpy as np
import torch

from utils.utils import load_image

from .errors import InvalidInputError
from .results import Dimensions

LOGGER = logging.getLogger("tiny_yolov2.net_input")

ImageLike = Union[str, Path, np.ndarray]


def compute_reshaped_dimensions(dims: Dimensions, input_size: int) -> Dimensions:
    """Size of an image after scaling its longer side to ``input_size``."""
    scale = input_size / float(max(dims.width, dims.height))
    return Dimensions(
        width=max(1, int(round(dims.width * scale))),
        height=max(1, int(round(dims.height * scale))),
    )


class NetInput:
    """A batch of RGB images awaiting conversion into a network input tensor."""

    def __init__(self, images: Sequence[np.ndarray]) -> None:
        if not images:
            raise InvalidInputError("NetInput requires at least one image")
        self._images: List[np.ndarray] = [self._as_rgb(image, index) for index, image in enumerate(images)]

    @classmethod
    def from_any(cls, inputs: Union[ImageLike, Sequence[ImageLike], "NetInput"]) -> "NetInput":
        if isinstance(inputs, NetInput):
            return inputs
        if isinstance(inputs, (str, Path, np.ndarray)):
            inputs = [inputs]
        images = [load_image(item) if isinstance(item, (str, Path)) else item for item in inputs]
        return cls(images)

    @property
    def batch_size(self) -> int:
        return len(self._images)

    def input_dimensions(self, batch_idx: int = 0) -> Dimensions:
        height, width = self._images[batch_idx].shape[:2]
        return Dimensions(width=int(width), height=int(height))

    def reshaped_dimensions(self, batch_idx: int, input_size: int) -> Dimensions:
        return compute_reshaped_dimensions(self.input_dimensions(batch_idx), input_size)

    def to_batch_tensor(self, input_size: int) -> torch.Tensor:
        """Letterboxed ``(B, 3, S, S)`` float tensor with pixel values in ``[0, 255]``."""
        if input_size <= 0:
            raise InvalidInputError(f"input_size must be positive, got {input_size}")
        batch = np.zeros((self.batch_size, input_size, input_size, 3), dtype=np.float32)
        for index, image in enumerate(self._images):
            reshaped = self.reshaped_dimensions(index, input_size)
            resized = cv2.resize(image, (reshaped.width, reshaped.height), interpolation=cv2.INTER_LINEAR)
            batch[index, : reshaped.height, : reshaped.width, :] = resized
        LOGGER.debug("Built input batch of %d image(s) at %dx%d", self.batch_size, input_size, input_size)
        return torch.from_numpy(batch).permute(0, 3, 1, 2).contiguous()

    @staticmethod
    def _as_rgb(image: np.ndarray, index: int) -> np.ndarray:
        if not isinstance(image, np.ndarray):
            raise InvalidInputError(f"Image #{index} must be a numpy array, got {type(image)!r}")
        if image.dtype not in (np.uint8, np.float32):
            image = image.astype(np.float32)
        if image.ndim == 2 or (image.ndim == 3 and image.shape[2] == 1):
            image = cv2.cvtColor(image.reshape(image.shape[0], image.shape[1]), cv2.COLOR_GRAY2RGB)
        if image.ndim != 3 or image.shape[2] != 3:
            raise InvalidInputError(f"Image #{index} must be HxWx3 RGB, got shape {image.shape}")
        if image.shape[0] == 0 or image.shape[1] == 0:
            raise InvalidInputError(f"Image #{index} is empty")
        return image


__all__ = ["ImageLike", "NetInput", "compute_reshaped_dimensions"]
