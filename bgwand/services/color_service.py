# services/color_service.py
"""
Perceptual color distance + hex parsing.

• Weighted Euclidean distance, weights R=0.30 / G=0.59 / B=0.11.
• A pair "matches" when distance <= tolerance * 2.5, which maps the
  0-100 UI slider onto the 0-255 distance range.
"""
from __future__ import annotations
import math
import re

import numpy as np

from ..models.color import Color
from ..models.errors import InvalidFormatError
from ..models.options import require_non_negative_int

_HEX_RE = re.compile(r"#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})", re.IGNORECASE)


class ColorService:
    WEIGHT_R = 0.30
    WEIGHT_G = 0.59
    WEIGHT_B = 0.11
    TOLERANCE_SCALE = 2.5
    # any tolerance above this already matches every pair (max distance is 255)
    TOLERANCE_CEILING = 255

    @staticmethod
    def hex_to_color(text: str) -> Color:
        """
        "#FF5733" / "ff5733" → Color(255, 87, 51).
        Shorthand ("#FFF") and anything else raises InvalidFormatError.
        """
        if not isinstance(text, str):
            raise InvalidFormatError(f"Hex color must be a string, got {type(text).__name__}")
        match = _HEX_RE.fullmatch(text)
        if match is None:
            raise InvalidFormatError(f"Invalid hex color: {text!r}")
        r, g, b = (int(pair, 16) for pair in match.groups())
        return Color(r, g, b)

    @classmethod
    def distance(cls, c1: Color, c2: Color) -> float:
        return math.sqrt(
            (c1.r - c2.r) ** 2 * cls.WEIGHT_R
            + (c1.g - c2.g) ** 2 * cls.WEIGHT_G
            + (c1.b - c2.b) ** 2 * cls.WEIGHT_B
        )

    @classmethod
    def max_distance(cls, tolerance: int) -> float:
        tolerance = require_non_negative_int("tolerance", tolerance)
        return min(tolerance, cls.TOLERANCE_CEILING) * cls.TOLERANCE_SCALE

    @classmethod
    def is_match(cls, c1: Color, c2: Color, tolerance: int) -> bool:
        return cls.distance(c1, c2) <= cls.max_distance(tolerance)

    # ─── whole-buffer variants ────────────────────────────────────────
    @classmethod
    def distance_map(cls, pixels: np.ndarray, color: Color) -> np.ndarray:
        """
        Args
        ----
        pixels : np.ndarray  (H, W, 3|4)  uint8

        Returns
        -------
        dist : np.ndarray  (H, W)  float64, same formula as distance()
        """
        rgb = pixels[..., :3].astype(np.float64)
        dr = rgb[..., 0] - color.r
        dg = rgb[..., 1] - color.g
        db = rgb[..., 2] - color.b
        return np.sqrt(dr ** 2 * cls.WEIGHT_R + dg ** 2 * cls.WEIGHT_G + db ** 2 * cls.WEIGHT_B)

    @classmethod
    def match_map(cls, pixels: np.ndarray, color: Color, tolerance: int) -> np.ndarray:
        """Boolean (H, W) map of pixels that is_match() *color*."""
        return cls.distance_map(pixels, color) <= cls.max_distance(tolerance)
