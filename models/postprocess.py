'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 12:45:00
 #  Modified time: 2025-11-04 10:15:00
 #  Description: Greedy class-agnostic non-maximum suppression for decoded detections.
'''

from __future__ import annotations

from typing import List, Sequence, Tuple

import torch
from torchvision.ops import nms


def non_max_suppression(
    boxes: Sequence[Tuple[float, float, float, float]],
    scores: Sequence[float],
    iou_threshold: float,
) -> List[int]:
    """Indices of the boxes surviving suppression, ordered by descending score.

    Suppression runs across all classes jointly.

    Args:
        boxes: Boxes in xyxy format.
        scores: Confidence per box.
        iou_threshold: Boxes overlapping a kept box by more than this are discarded.
    """
    if len(boxes) != len(scores):
        raise ValueError(f"Got {len(boxes)} boxes but {len(scores)} scores")
    if not boxes:
        return []

    boxes_tensor = torch.tensor(boxes, dtype=torch.float32).view(-1, 4)
    scores_tensor = torch.tensor(scores, dtype=torch.float32)
    keep = nms(boxes_tensor, scores_tensor, float(iou_threshold))
    return [int(index) for index in keep.tolist()]


__all__ = ["non_max_suppression"]
