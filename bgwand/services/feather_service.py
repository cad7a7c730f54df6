# services/feather_service.py
"""
Distance-to-foreground lookups used for alpha feathering.

For a background pixel the "edge distance" is the Euclidean distance to the
nearest foreground (mask == 0) pixel inside a (2r+1)^2 window, capped at r.
Foreground pixels report r.

Cost is O(W * H * min(r, W) * min(r, H)) for a full map; fine for the small
radii the UI offers, but this is the hotspot of a segmentation call.
"""
import logging
import math

import numpy as np

from ..models.errors import DimensionMismatchError, EmptyBufferError
from ..models.options import require_non_negative_int
from ..repositories.image_repository import ImageRepository

logger = logging.getLogger(__name__)


def _check_mask(mask: np.ndarray) -> None:
    if mask is None or mask.size == 0:
        raise EmptyBufferError("Mask is empty")
    if mask.ndim != 2:
        raise DimensionMismatchError(f"Expected a 2-D mask, got shape {mask.shape}")


class FeatherService:

    @staticmethod
    def edge_distance(mask: np.ndarray, x: int, y: int, max_radius: int) -> float:
        """Edge distance for a single pixel."""
        max_radius = require_non_negative_int("max_radius", max_radius)
        _check_mask(mask)
        height, width = mask.shape
        x, y = ImageRepository.check_point(x, y, width, height)

        if not mask[y, x]:
            return float(max_radius)

        x0, x1 = max(0, x - max_radius), min(width, x + max_radius + 1)
        y0, y1 = max(0, y - max_radius), min(height, y + max_radius + 1)
        ys, xs = np.nonzero(mask[y0:y1, x0:x1] == 0)
        if ys.size == 0:
            return float(max_radius)

        dx = (xs + x0 - x).astype(np.float64)
        dy = (ys + y0 - y).astype(np.float64)
        nearest = float(np.sqrt(dx * dx + dy * dy).min())
        return min(float(max_radius), nearest)

    @staticmethod
    def edge_distance_map(mask: np.ndarray, max_radius: int) -> np.ndarray:
        """
        edge_distance() for every pixel at once → (H, W) float64.

        Sweeps the window offsets instead of the pixels: for each (dx, dy)
        closer than r, any pixel whose shifted neighbour is foreground gets
        min(dist, hypot(dx, dy)).  Offsets at or beyond r cannot beat the cap
        and are skipped.
        """
        max_radius = require_non_negative_int("max_radius", max_radius)
        _check_mask(mask)
        height, width = mask.shape

        dist = np.full((height, width), float(max_radius), dtype=np.float64)
        background = mask != 0
        foreground = ~background
        if max_radius == 0 or not foreground.any() or not background.any():
            return dist

        # offsets past the image edge never land on a pixel
        reach_y = min(max_radius, height - 1)
        reach_x = min(max_radius, width - 1)
        for dy in range(-reach_y, reach_y + 1):
            for dx in range(-reach_x, reach_x + 1):
                step = math.sqrt(dx * dx + dy * dy)
                if step >= max_radius:
                    continue
                # dst[y, x] looks at src[y + dy, x + dx]
                src = foreground[max(0, dy):height + min(0, dy), max(0, dx):width + min(0, dx)]
                dst = dist[max(0, -dy):height + min(0, -dy), max(0, -dx):width + min(0, -dx)]
                np.minimum(dst, np.where(src, step, np.inf), out=dst)

        dist[foreground] = float(max_radius)
        return dist
