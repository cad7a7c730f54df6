# pipeline/background_remover.py
from __future__ import annotations
import logging
import time

from ..models.errors import EmptyBufferError
from ..models.image import Image
from ..models.options import ColorReplacement, SegmentationOptions
from ..services.compositing_service import CompositingService
from ..services.image_service import ImageService
from ..services.segmentation_service import SegmentationService

logger = logging.getLogger(__name__)


def remove_background(
    image: Image,
    x: int,
    y: int,
    options: SegmentationOptions,
    *,
    replacement: ColorReplacement | None = None,
    segmentation_service: SegmentationService | None = None,
    compositing_service: CompositingService | None = None,
    image_service: ImageService | None = None,
) -> Image:
    """
    One click on *image* at buffer coordinates (x, y):
        • sample the seed color from the source pixels
        • flood-fill the matching region into a background mask
        • smooth the mask (options.smoothing passes)
        • cut the background out with options.feather px of alpha falloff
        • optionally recolor the result
    Returns a new Image; *image* itself is never modified.  When *image*
    carries original_pixels (a previous result), the click runs on those,
    so repeated clicks never stack up.
    """
    segmentation_service = segmentation_service or SegmentationService()
    compositing_service = compositing_service or CompositingService()
    image_service = image_service or ImageService()

    if not isinstance(options, SegmentationOptions):
        raise TypeError(f"options must be SegmentationOptions, got {type(options).__name__}")
    if image is None or image.pixels is None or image.pixels.size == 0:
        raise EmptyBufferError("No image loaded")

    started = time.perf_counter()
    working = image_service.create_image(image.pixels, image.path)
    working.original_pixels = image.original_pixels
    # start from the loaded pixels, never from a previous click's cut-out
    image_service.reset(working)
    image_service.preserve_original_state(working)
    source = working.pixels
    target_color = image_service.sample_pixel(working, x, y)

    # 1. seed region → mask
    mask = segmentation_service.build_mask(source, x, y, target_color, options.tolerance)

    # 2. boundary cleanup
    if options.smoothing > 0:
        segmentation_service.smooth(mask, options.smoothing)

    # 3. alpha cut
    new_pixels = compositing_service.remove_background(source, mask, options.feather)

    # 4. optional recolor on the cut-out
    if replacement is not None:
        compositing_service.replace_color(
            new_pixels, replacement.from_color, replacement.to_color, replacement.tolerance
        )

    result = image_service.create_image(new_pixels, image.path)
    result.original_pixels = working.original_pixels
    logger.info(
        f"Background removed at ({x}, {y}) color={target_color.to_hex()} "
        f"tol={options.tolerance} smooth={options.smoothing} feather={options.feather}: "
        f"{int(mask.sum())}/{mask.size} px cleared in {time.perf_counter() - started:.2f}s"
    )
    return result
