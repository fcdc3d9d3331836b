'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-10-30 17:10:00
 # @ Modified time: 2025-11-03 13:10:00
 # @ Description: Utility helpers for configuration loading, image reading and output files.
'''

from __future__ import annotations

"""Shared utility helpers for configuration, images and filesystem output."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import cv2
import numpy as np
import yaml

LOGGER = logging.getLogger("tiny_yolov2.utils")


def load_yaml_config(path: str | Path) -> Dict[str, Any]:
    """Load a YAML configuration file from disk."""
    config_path = Path(path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with config_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected dict at root of config, got {type(data)!r}")
    return data


def load_image(path: str | Path) -> np.ndarray:
    """Read an image from disk as an RGB ``uint8`` array."""
    image_path = Path(path)
    if not image_path.is_file():
        raise FileNotFoundError(f"Image not found: {image_path}")
    image = cv2.imread(str(image_path))
    if image is None:
        raise ValueError(f"Failed to read image: {image_path}")
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist."""
    target = Path(path)
    target.mkdir(parents=True, exist_ok=True)
    return target


def write_json(path: str | Path, payload: Union[Dict[str, Any], List[Any]]) -> None:
    """Persist a JSON payload with deterministic formatting."""
    target = Path(path)
    ensure_dir(target.parent)
    with target.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False, indent=2)
    LOGGER.info("Wrote %s", target)
