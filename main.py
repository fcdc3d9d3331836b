'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-10-30 17:25:00
 # @ Modified time: 2025-11-03 14:20:00
 # @ Description: Command-line entry point for configuration-driven Tiny YOLOv2 detection.
'''
import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from models import ForwardParams, create_detector
from models.config import INPUT_SIZES
from utils.utils import load_yaml_config, write_json


def _setup_logging(log_level: str) -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def _parse_input_size(value: str) -> Union[int, str]:
    if value in INPUT_SIZES:
        return value
    try:
        return int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"input size must be an integer or one of {sorted(INPUT_SIZES)}, got '{value}'"
        ) from exc


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Tiny YOLOv2 detection entry point",
        epilog="""
Examples:
  python main.py --image street.jpg                          # Detect with default config
  python main.py --config my_config.yaml --image street.jpg  # Detect with custom config
  python main.py --image street.jpg --input-size lg --score-threshold 0.3
  python main.py --describe                                  # Print the resolved model setup
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config.yaml",
        help="Path to the YAML configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "--image",
        type=str,
        action="append",
        default=[],
        help="Image to run detection on (may be given multiple times)",
    )
    parser.add_argument(
        "--input-size",
        type=_parse_input_size,
        default=None,
        help=f"Network input size in pixels or one of {sorted(INPUT_SIZES)}",
    )
    parser.add_argument(
        "--score-threshold",
        type=float,
        default=None,
        help="Drop detections whose objectness does not exceed this value",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write detections as JSON to this path instead of logging them",
    )
    parser.add_argument(
        "--describe",
        action="store_true",
        help="Log the resolved detector configuration and exit",
    )
    return parser.parse_args(argv)


def _forward_params(config: Dict[str, Any], args: argparse.Namespace) -> ForwardParams:
    section = dict(config.get("inference", {}))
    if args.input_size is not None:
        section["input_size"] = args.input_size
    if args.score_threshold is not None:
        section["score_threshold"] = args.score_threshold
    return ForwardParams.from_config(section)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    _setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    config = load_yaml_config(args.config)
    bundle = create_detector(config)
    detector = bundle.detector

    if args.describe:
        for key, value in sorted(bundle.metadata.items()):
            logger.info("%s: %s", key, value)
        return 0

    if not args.image:
        logger.error("No --image given; nothing to detect")
        return 1
    if "checkpoint" not in bundle.metadata:
        logger.warning("No checkpoint loaded; detections come from randomly initialized weights")

    forward_params = _forward_params(config, args)
    report: Dict[str, Any] = {}
    for image_path in args.image:
        detections = detector.detect(image_path, forward_params)
        report[image_path] = [detection.to_dict() for detection in detections]
        logger.info("%s: %d detection(s)", image_path, len(detections))
        if args.output is None:
            for detection in detections:
                logger.info(
                    "  %s %.3f box=(%.1f, %.1f, %.1f, %.1f)",
                    detection.class_name,
                    detection.score,
                    *detection.box,
                )

    if args.output is not None:
        write_json(Path(args.output), report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
