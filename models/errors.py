'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 10:05:00
 #  Modified time: 2025-11-03 10:05:00
 #  Description: Error types raised by the Tiny YOLOv2 detector core.
'''

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid anchors, class list, loss scales or input-size preset."""


class NotLoadedError(RuntimeError):
    """Inference was requested before network parameters were available."""


class InvalidInputError(ValueError):
    """Bad working resolution, malformed output tensor or ground truth outside the grid."""


__all__ = ["ConfigurationError", "NotLoadedError", "InvalidInputError"]
