import logging

import numpy as np

from ..models.color import Color
from ..models.errors import DimensionMismatchError
from ..models.options import require_non_negative_int
from ..repositories.image_repository import ImageRepository
from .color_service import ColorService
from .feather_service import FeatherService

logger = logging.getLogger(__name__)


class CompositingService:
    """
    Business-level helper for turning a mask into transparency.

    • remove_background returns a **new** RGBA buffer, source untouched.
    • replace_color edits the buffer it is given and hands it back.
    """

    def __init__(self,
                 feather_service: FeatherService = None,
                 color_service: ColorService = None):
        self.feather_service = feather_service or FeatherService()
        self.color_service = color_service or ColorService()

    def remove_background(
            self,
            pixels: np.ndarray,
            mask: np.ndarray,
            feather_radius: int = 0,  # ← edge-softness control
    ) -> np.ndarray:
        """
        Alpha-cut the masked background out of *pixels*.

        • feather_radius = 0  -- hard cut, background alpha → 0
        • feather_radius > 0  -- alpha *= max(0, 1 - d / radius), where d is
          the distance to the nearest foreground pixel
        Foreground alpha and every RGB value are copied as-is.
        """
        pixels = ImageRepository.validate_rgba(pixels)
        feather_radius = require_non_negative_int("feather", feather_radius)
        if mask is None or mask.shape != pixels.shape[:2]:
            got = None if mask is None else mask.shape
            raise DimensionMismatchError(
                f"Mask shape {got} does not match image shape {pixels.shape[:2]}"
            )

        out = pixels.copy()
        background = mask != 0
        if feather_radius == 0:
            out[..., 3][background] = 0
            return out

        dist = self.feather_service.edge_distance_map(mask, feather_radius)
        factor = np.maximum(0.0, 1.0 - dist / feather_radius)
        alpha = np.floor(pixels[..., 3].astype(np.float64) * factor).astype(np.uint8)
        out[..., 3][background] = alpha[background]
        logger.debug(f"Feathered {int(background.sum())} background px, radius={feather_radius}")
        return out

    def replace_color(
            self,
            pixels: np.ndarray,
            from_color: Color,
            to_color: Color,
            tolerance: int,
    ) -> np.ndarray:
        """
        Overwrite RGB of every visible pixel matching *from_color*.
        Fully transparent pixels are skipped; alpha is never written.
        """
        ImageRepository.validate_rgba(pixels)  # edits happen on *pixels* itself
        hits = (pixels[..., 3] != 0) & self.color_service.match_map(pixels, from_color, tolerance)
        pixels[hits, :3] = to_color.as_tuple()
        logger.debug(f"Recolored {int(hits.sum())} px {from_color.to_hex()} → {to_color.to_hex()}")
        return pixels
