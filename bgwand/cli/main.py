"""
Command-line wrapper:

    bgwand segment photo.jpg -x 5 -y 5 --tolerance 30 --smoothing 2 --feather 3
    bgwand recolor cutout.png --from "#00FF00" --to "#FFFFFF" --tolerance 20

Coordinates are buffer pixels of the (optionally --fit) image.
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from ..models.errors import BackgroundRemovalError
from ..models.options import SegmentationOptions
from ..pipeline.background_remover import remove_background
from ..pipeline.color_replacer import build_replacement, replace_colors
from ..services.image_service import ImageService

logger = logging.getLogger(__name__)

OUTPUT_EXT = os.getenv("OUTPUT_IMG_EXT", ".png")


def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _output_path(input_path: Path, suffix: str, output: str | Path | None) -> Path:
    if output:
        return Path(output)
    return input_path.with_name(f"{input_path.stem}_{suffix}{OUTPUT_EXT}")


def segment(
    image_path: str | Path,
    x: int,
    y: int,
    tolerance: int,
    smoothing: int,
    feather: int,
    *,
    output: str | Path | None = None,
    fit: bool = False,
    replace_from: str | None = None,
    replace_to: str | None = None,
    replace_tolerance: int | None = None,
    image_service: ImageService | None = None,
) -> Path:
    """Remove the background clicked at (x, y) and write a PNG.  Returns its path."""
    image_service = image_service or ImageService()
    image_path = Path(image_path)

    options = SegmentationOptions(tolerance=tolerance, smoothing=smoothing, feather=feather)
    replacement = None
    if replace_from or replace_to:
        if not (replace_from and replace_to):
            raise ValueError("--replace-from and --replace-to must be given together")
        if replace_tolerance is None:
            replace_tolerance = _env_int("DEFAULT_COLOR_TOLERANCE", 30)
        replacement = build_replacement(replace_from, replace_to, replace_tolerance)

    image = image_service.load(image_path)
    if fit:
        image = image_service.fit_within(image)

    result = remove_background(image, x, y, options, replacement=replacement,
                               image_service=image_service)
    result.path = _output_path(image_path, "nobg", output)
    image_service.save(result)
    return result.path


def recolor(
    image_path: str | Path,
    from_hex: str,
    to_hex: str,
    tolerance: int,
    *,
    output: str | Path | None = None,
    image_service: ImageService | None = None,
) -> Path:
    """Replace one color with another on every visible pixel and write a PNG."""
    image_service = image_service or ImageService()
    image_path = Path(image_path)

    replacement = build_replacement(from_hex, to_hex, tolerance)
    image = image_service.load(image_path)
    result = replace_colors(image, replacement, image_service=image_service)
    result.path = _output_path(image_path, "recolored", output)
    image_service.save(result)
    return result.path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bgwand",
        description="Single-click background removal and color replacement.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    seg = sub.add_parser("segment", help="Remove the background region containing (x, y)")
    seg.add_argument("image", type=Path, help="Input image")
    seg.add_argument("-x", type=int, required=True, help="Seed column (buffer pixels)")
    seg.add_argument("-y", type=int, required=True, help="Seed row (buffer pixels)")
    seg.add_argument("--tolerance", type=int, default=_env_int("DEFAULT_TOLERANCE", 30),
                     help="Color tolerance, 0-100")
    seg.add_argument("--smoothing", type=int, default=_env_int("DEFAULT_SMOOTHING", 2),
                     help="Mask smoothing passes")
    seg.add_argument("--feather", type=int, default=_env_int("DEFAULT_FEATHER", 2),
                     help="Edge feather radius in pixels")
    seg.add_argument("--fit", action="store_true",
                     help="Downscale to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT first")
    seg.add_argument("--replace-from", default=None, help="Hex color to replace after the cut")
    seg.add_argument("--replace-to", default=None, help="Replacement hex color")
    seg.add_argument("--replace-tolerance", type=int, default=None)
    seg.add_argument("-o", "--output", default=None, help="Output PNG path")

    rec = sub.add_parser("recolor", help="Replace a color on every visible pixel")
    rec.add_argument("image", type=Path, help="Input image")
    rec.add_argument("--from", dest="from_hex", required=True, help="Hex color to replace")
    rec.add_argument("--to", dest="to_hex", required=True, help="Replacement hex color")
    rec.add_argument("--tolerance", type=int, default=_env_int("DEFAULT_COLOR_TOLERANCE", 30))
    rec.add_argument("-o", "--output", default=None, help="Output PNG path")
    return parser


def main(argv: list[str] | None = None) -> int:
    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )
    args = build_parser().parse_args(argv)

    try:
        if args.command == "segment":
            out = segment(
                args.image, args.x, args.y,
                tolerance=args.tolerance,
                smoothing=args.smoothing,
                feather=args.feather,
                output=args.output,
                fit=args.fit,
                replace_from=args.replace_from,
                replace_to=args.replace_to,
                replace_tolerance=args.replace_tolerance,
            )
        else:
            out = recolor(args.image, args.from_hex, args.to_hex, args.tolerance, output=args.output)
    except BackgroundRemovalError as err:
        logger.error(f"{err.error_type}: {err}")
        print(f"error: {err}", file=sys.stderr)
        return 2
    except (FileNotFoundError, ValueError) as err:
        print(f"error: {err}", file=sys.stderr)
        return 1

    print(out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
