# pipeline/color_replacer.py
from __future__ import annotations
import logging

from ..models.errors import EmptyBufferError
from ..models.image import Image
from ..models.options import ColorReplacement
from ..services.color_service import ColorService
from ..services.compositing_service import CompositingService
from ..services.image_service import ImageService

logger = logging.getLogger(__name__)


def build_replacement(from_hex: str, to_hex: str, tolerance: int) -> ColorReplacement:
    """Parse the two hex strings; bad input raises before any pixel work."""
    return ColorReplacement(
        from_color=ColorService.hex_to_color(from_hex),
        to_color=ColorService.hex_to_color(to_hex),
        tolerance=tolerance,
    )


def replace_colors(
    image: Image,
    replacement: ColorReplacement,
    *,
    compositing_service: CompositingService | None = None,
    image_service: ImageService | None = None,
) -> Image:
    """
    Recolor a copy of *image*.  Transparent pixels stay as they are, so this
    can run on a cut-out as well as on the untouched source.
    """
    compositing_service = compositing_service or CompositingService()
    image_service = image_service or ImageService()

    if image is None or image.pixels is None or image.pixels.size == 0:
        raise EmptyBufferError("No image loaded")

    new_pixels = compositing_service.replace_color(
        image.pixels.copy(), replacement.from_color, replacement.to_color, replacement.tolerance
    )
    result = image_service.create_image(new_pixels, image.path)
    result.original_pixels = image.original_pixels
    logger.info(
        f"Replaced {replacement.from_color.to_hex()} → {replacement.to_color.to_hex()} "
        f"(tol={replacement.tolerance})"
    )
    return result
