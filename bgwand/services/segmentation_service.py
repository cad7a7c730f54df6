# services/segmentation_service.py
import logging
import time

import numpy as np

from ..models.color import Color
from ..models.errors import DimensionMismatchError, EmptyBufferError
from ..models.options import require_non_negative_int
from ..repositories.image_repository import ImageRepository
from .color_service import ColorService

logger = logging.getLogger(__name__)


class SegmentationService:
    """
    Click-seeded background mask + mask cleanup.

    • build_mask: 4-connected flood fill over color-matching pixels.
    • smooth:     iterative 3x3 majority vote on interior pixels.

    Masks are (H, W) uint8 arrays, 1 = background, 0 = foreground.
    """

    def __init__(self, color_service: ColorService = None) -> None:
        self.color_service = color_service or ColorService()

    # ---------- flood fill ----------
    def build_mask(
            self,
            pixels: np.ndarray,
            seed_x: int,
            seed_y: int,
            target_color: Color,
            tolerance: int,
    ) -> np.ndarray:
        """
        Grow the region connected to (seed_x, seed_y) whose pixels match
        *target_color* within *tolerance*.

        Explicit stack, no recursion.  The per-pixel match test is evaluated up-front for the
        whole buffer; the fill itself only walks connectivity.
        """
        pixels = ImageRepository.validate_rgba(pixels)
        tolerance = require_non_negative_int("tolerance", tolerance)
        height, width = pixels.shape[:2]
        seed_x, seed_y = ImageRepository.check_point(seed_x, seed_y, width, height)

        started = time.perf_counter()
        matches = self.color_service.match_map(pixels, target_color, tolerance).ravel().tolist()
        visited = bytearray(width * height)  # keyed by y * width + x

        stack = [(seed_x, seed_y)]
        while stack:
            x, y = stack.pop()
            if x < 0 or x >= width or y < 0 or y >= height:
                continue
            index = y * width + x
            if visited[index] or not matches[index]:
                continue

            visited[index] = 1
            stack.append((x + 1, y))
            stack.append((x - 1, y))
            stack.append((x, y + 1))
            stack.append((x, y - 1))

        mask = np.frombuffer(bytes(visited), dtype=np.uint8).reshape(height, width).copy()
        logger.debug(
            f"Flood fill from ({seed_x}, {seed_y}) tol={tolerance}: "
            f"{int(mask.sum())}/{mask.size} px in {time.perf_counter() - started:.3f}s"
        )
        return mask

    # ---------- smoothing ----------
    @staticmethod
    def smooth(mask: np.ndarray, iterations: int) -> np.ndarray:
        """
        In-place majority smoothing.  Border rows / columns are never touched;
        each pass reads only the previous pass's settled state.

        Returns the same *mask* object for chaining.
        """
        iterations = require_non_negative_int("iterations", iterations)
        if mask is None or mask.size == 0:
            raise EmptyBufferError("Mask is empty")
        if mask.ndim != 2:
            raise DimensionMismatchError(f"Expected a 2-D mask, got shape {mask.shape}")

        height, width = mask.shape
        if iterations == 0 or height < 3 or width < 3:
            return mask

        current = mask.astype(np.uint8, copy=True)
        scratch = current.copy()
        for _ in range(iterations):
            total = np.zeros((height - 2, width - 2), dtype=np.uint16)
            for dy in range(3):
                for dx in range(3):
                    total += current[dy:dy + height - 2, dx:dx + width - 2]

            # borders in scratch already equal current's (never written)
            scratch[1:-1, 1:-1] = (total / 9.0 > 0.5).astype(np.uint8)
            current, scratch = scratch, current

        mask[...] = current
        return mask
