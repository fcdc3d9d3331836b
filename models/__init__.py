'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-10-31 11:20:00
 # @ Modified time: 2025-11-03 14:05:00
 # @ Description: Public interface for the Tiny YOLOv2 detector core.
 # @ Description (Legacy): This module exposes the detector, its configuration,
 #      the training loss and the data containers shared between them.
'''

from .anchors import AnchorGrid
from .config import DetectorConfig, ForwardParams, LossScales
from .detector import TinyYoloV2Detector
from .errors import ConfigurationError, InvalidInputError, NotLoadedError
from .factory import DetectorBundle, create_detector
from .losses import LossBreakdown, TinyYoloV2Loss
from .results import DecodedBox, Dimensions, ObjectDetection
from .targets import GroundTruthBox

__all__ = [
    "AnchorGrid",
    "DetectorConfig",
    "ForwardParams",
    "LossScales",
    "TinyYoloV2Detector",
    "ConfigurationError",
    "InvalidInputError",
    "NotLoadedError",
    "DetectorBundle",
    "create_detector",
    "LossBreakdown",
    "TinyYoloV2Loss",
    "DecodedBox",
    "Dimensions",
    "ObjectDetection",
    "GroundTruthBox",
]
