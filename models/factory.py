'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-10-31 11:20:00
 # @ Modified time: 2025-11-03 14:00:00
 # @ Description: Factory utilities to construct the Tiny YOLOv2 detector stack.
 # @ Description (Legacy): This module builds the detector, its network and the
 #      loss object from configuration data and optionally restores a checkpoint.
'''

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from torch import nn

from .config import DetectorConfig
from .detector import TinyYoloV2Detector
from .losses import TinyYoloV2Loss

LOGGER = logging.getLogger("tiny_yolov2.models")


@dataclass
class DetectorBundle:
    """Container for the assembled detector components."""

    detector: TinyYoloV2Detector
    loss: TinyYoloV2Loss
    metadata: Dict[str, Any]


def create_detector(
    config: Dict[str, Any] | DetectorConfig,
    *,
    build_network: bool = True,
    load_checkpoint: bool = True,
) -> DetectorBundle:
    """Build the detector, its network and loss from configuration data.

    Args:
        config: Either a mapping representing the model configuration or an existing
            :class:`DetectorConfig` instance.
        build_network: Attach a freshly initialized network. When ``False`` the detector
            only becomes usable for inference once a checkpoint loads.
        load_checkpoint: When ``True`` and a checkpoint path is provided, attempt to
            load weights into the detector.

    Returns:
        A :class:`DetectorBundle` with the detector, loss module and metadata.
    """

    detector_config = config if isinstance(config, DetectorConfig) else DetectorConfig.from_config(config)
    detector = TinyYoloV2Detector(detector_config)
    if build_network:
        detector.attach_network(detector.build_network())

    metadata: Dict[str, Any] = {
        "backbone": detector_config.backbone,
        "num_anchors": detector.grid.num_anchors,
        "num_classes": detector_config.num_classes,
        "with_class_scores": detector.with_class_scores,
        "box_encoding_size": detector.box_encoding_size,
    }

    if load_checkpoint and detector_config.checkpoint_path is not None:
        if _maybe_load_checkpoint(detector, detector_config.checkpoint_path):
            metadata["checkpoint"] = str(detector_config.checkpoint_path)

    if detector.is_loaded:
        metadata["num_parameters"] = _count_parameters(detector.network)

    return DetectorBundle(detector=detector, loss=detector.loss, metadata=metadata)


def _maybe_load_checkpoint(detector: TinyYoloV2Detector, checkpoint_path: Path) -> bool:
    if not checkpoint_path.is_file():
        LOGGER.warning("Checkpoint path does not exist: %s", checkpoint_path)
        return False
    try:
        detector.load_checkpoint(checkpoint_path)
    except (OSError, RuntimeError, ValueError) as exc:
        LOGGER.warning("Failed to load checkpoint %s: %s", checkpoint_path, exc)
        return False
    return True


def _count_parameters(network: nn.Module) -> int:
    return sum(param.numel() for param in network.parameters())
