'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-10-31 11:20:00
 #  Modified time: 2025-11-03 13:30:00
 #  Description: Tiny YOLOv2 detector: decoding, filtering and suppression.
 #  Description (Legacy): Wraps an immutable configuration and an optional set of
 #       network parameters; exposes inference and the training loss.
'''

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import torch
from torch import nn

from .anchors import AnchorGrid
from .backbones import build_backbone
from .box_codec import class_probabilities, correction_factors, decode_grid, squash
from .config import DetectorConfig, ForwardParams, resolve_input_size
from .errors import InvalidInputError, NotLoadedError
from .losses import LossBreakdown, build_loss
from .net_input import ImageLike, NetInput
from .postprocess import non_max_suppression
from .results import DecodedBox, Dimensions, ObjectDetection
from .targets import GroundTruthBox

LOGGER = logging.getLogger("tiny_yolov2.detector")


class DetectorStage(Enum):
    IDLE = "idle"
    DECODING = "decoding"
    FILTERING = "filtering"
    SUPPRESSING = "suppressing"
    DONE = "done"


class TinyYoloV2Detector:
    """Tiny YOLOv2 detector over a single ``(N, N, A, E)`` output grid.

    The configuration is fixed at construction. Network parameters are attached
    separately (``attach_network``, ``load_params`` or ``load_checkpoint``) and
    inference fails with :class:`NotLoadedError` until they are present.
    """

    def __init__(self, config: DetectorConfig, network: Optional[nn.Module] = None) -> None:
        self._config = config
        self.grid = AnchorGrid.from_config(config)
        self.loss = build_loss(config)
        self._network: Optional[nn.Module] = None
        if network is not None:
            self.attach_network(network)

    @property
    def config(self) -> DetectorConfig:
        return self._config

    @property
    def with_class_scores(self) -> bool:
        return self.grid.with_class_scores

    @property
    def box_encoding_size(self) -> int:
        return self.grid.box_encoding_size

    @property
    def is_loaded(self) -> bool:
        return self._network is not None

    @property
    def network(self) -> nn.Module:
        if self._network is None:
            raise NotLoadedError("TinyYoloV2Detector - load model before inference")
        return self._network

    def build_network(self) -> nn.Module:
        backbone_spec = build_backbone(
            name=self.config.backbone,
            input_channels=3,
            num_outputs=self.grid.num_anchors * self.box_encoding_size,
            separable=self.config.with_separable_convs,
            **self.config.backbone_params,
        )
        return backbone_spec.module

    def attach_network(self, network: nn.Module) -> None:
        self._network = network
        LOGGER.debug("Attached network %s", network.__class__.__name__)

    def load_params(self, state_dict: Dict[str, torch.Tensor]) -> None:
        network = self._network if self._network is not None else self.build_network()
        network.load_state_dict(state_dict, strict=True)
        self.attach_network(network)

    def load_checkpoint(self, checkpoint_path: str | Path) -> None:
        path = Path(checkpoint_path)
        if not path.is_file():
            raise FileNotFoundError(f"Checkpoint not found: {path}")
        checkpoint = torch.load(path, map_location="cpu")
        state_dict = checkpoint.get("state_dict", checkpoint) if isinstance(checkpoint, dict) else None
        if not isinstance(state_dict, dict):
            raise ValueError(f"Invalid checkpoint format at {path}")
        self.load_params(state_dict)
        LOGGER.info("Loaded checkpoint from %s", path)

    def extract_params(self) -> Dict[str, torch.Tensor]:
        return {name: tensor.detach().clone() for name, tensor in self.network.state_dict().items()}

    def forward_input(self, net_input: NetInput, input_size: int) -> torch.Tensor:
        """Run the network on a letterboxed batch, returning the raw ``(B, A * E, N, N)`` output."""
        network = self.network
        batch = net_input.to_batch_tensor(input_size)
        device = next(network.parameters(), batch).device
        batch = batch.to(device)
        if self.config.mean_rgb is not None:
            mean = torch.tensor(self.config.mean_rgb, dtype=batch.dtype, device=device).view(1, 3, 1, 1)
            batch = batch - mean
        batch = batch / 256.0
        return network(batch)

    def forward(self, image: Union[ImageLike, Sequence[ImageLike], NetInput], input_size: int) -> torch.Tensor:
        return self.forward_input(NetInput.from_any(image), resolve_input_size(input_size))

    def detect(
        self,
        image: Union[ImageLike, Sequence[ImageLike], NetInput],
        params: Union[ForwardParams, Dict[str, Any], None] = None,
    ) -> List[ObjectDetection]:
        if not self.is_loaded:
            raise NotLoadedError("TinyYoloV2Detector - load model before inference")
        forward_params = params if isinstance(params, ForwardParams) else ForwardParams.from_config(params)
        input_size = resolve_input_size(forward_params.input_size)

        net_input = NetInput.from_any(image)
        network = self.network
        network.eval()
        with torch.no_grad():
            output = self.forward_input(net_input, input_size)

        return self.detections_from_output(
            output[0:1],
            input_size,
            net_input.reshaped_dimensions(0, input_size),
            net_input.input_dimensions(0),
            forward_params.score_threshold,
            layout="nchw",
        )

    @torch.no_grad()
    def decode_output(
        self,
        raw: torch.Tensor,
        reshaped_dims: Tuple[int, int],
        score_threshold: Optional[float] = None,
        *,
        layout: str = "nchw",
    ) -> List[DecodedBox]:
        """Decode every slot whose objectness exceeds ``score_threshold`` (all slots when unset).

        ``raw`` is read according to ``layout`` (see :meth:`AnchorGrid.reshape_output`); the
        default matches the ``(1, A * E, N, N)`` tensor returned by :meth:`forward`.
        """
        LOGGER.debug("Stage %s", DetectorStage.DECODING.name)
        output = self.grid.reshape_output(raw, layout).detach().float()
        width, height = Dimensions(*reshaped_dims)
        correction_x, correction_y = correction_factors(width, height)

        objectness = squash(output[..., 4])
        boxes = decode_grid(output, self.grid.anchor_tensor(device=output.device), correction_x, correction_y)
        if self.with_class_scores:
            class_scores, class_labels = class_probabilities(output[..., 5:]).max(dim=-1)
        else:
            class_scores = torch.ones_like(objectness)
            class_labels = torch.zeros_like(objectness, dtype=torch.long)

        LOGGER.debug("Stage %s", DetectorStage.FILTERING.name)
        if score_threshold:
            keep = objectness > float(score_threshold)
        else:
            keep = torch.ones_like(objectness, dtype=torch.bool)

        results: List[DecodedBox] = []
        for row, col, anchor in torch.nonzero(keep).tolist():
            results.append(
                DecodedBox(
                    box=tuple(float(value) for value in boxes[row, col, anchor].tolist()),
                    score=float(objectness[row, col, anchor] * class_scores[row, col, anchor]),
                    class_label=int(class_labels[row, col, anchor]),
                    row=row,
                    col=col,
                    anchor=anchor,
                )
            )
        return results

    def detections_from_output(
        self,
        raw: torch.Tensor,
        input_size: int,
        reshaped_dims: Tuple[int, int],
        image_dims: Tuple[int, int],
        score_threshold: Optional[float] = None,
        *,
        layout: str = "nchw",
    ) -> List[ObjectDetection]:
        if input_size <= 0:
            raise InvalidInputError(f"input_size must be positive, got {input_size}")
        decoded = self.decode_output(raw, reshaped_dims, score_threshold, layout=layout)

        LOGGER.debug("Stage %s with %d candidate(s)", DetectorStage.SUPPRESSING.name, len(decoded))
        indices = non_max_suppression(
            [result.rescale(input_size) for result in decoded],
            [result.score for result in decoded],
            self.config.iou_threshold,
        )

        dims = Dimensions(*image_dims)
        detections = [
            ObjectDetection(
                score=decoded[index].score,
                class_label=decoded[index].class_label,
                class_name=self.config.classes[decoded[index].class_label],
                relative_box=decoded[index].box,
                image_dims=dims,
            )
            for index in indices
        ]
        LOGGER.debug("Stage %s with %d detection(s)", DetectorStage.DONE.name, len(detections))
        return detections

    def compute_loss(
        self,
        raw: torch.Tensor,
        ground_truth: Sequence[GroundTruthBox],
        reshaped_dims: Tuple[int, int],
        *,
        layout: str = "nchw",
    ) -> LossBreakdown:
        """Training loss for one image; ``raw`` defaults to the NCHW tensor emitted by the network."""
        return self.loss(raw, ground_truth, reshaped_dims, layout=layout)


__all__ = ["DetectorStage", "TinyYoloV2Detector"]
