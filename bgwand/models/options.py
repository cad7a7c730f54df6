from __future__ import annotations
from dataclasses import dataclass
import numbers

from .color import Color
from .errors import InvalidOptionsError


def require_non_negative_int(name: str, value) -> int:
    """
    Reject anything that is not a plain non-negative int.
    Values are never coerced or clamped.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidOptionsError(f"{name} must be a non-negative integer, got {value!r}")
    if value < 0:
        raise InvalidOptionsError(f"{name} must be a non-negative integer, got {value}")
    return int(value)


@dataclass(frozen=True)
class SegmentationOptions:
    """
    Settings for one background-removal click.

    tolerance: 0-100 on the UI slider, any non-negative int accepted here.
    smoothing: number of 3x3 smoothing passes over the mask.
    feather:   alpha falloff radius in pixels (0 = hard cut).
    """
    tolerance: int
    smoothing: int = 0
    feather: int = 0

    def __post_init__(self):
        require_non_negative_int("tolerance", self.tolerance)
        require_non_negative_int("smoothing", self.smoothing)
        require_non_negative_int("feather", self.feather)


@dataclass(frozen=True)
class ColorReplacement:
    """Swap every visible pixel close to from_color for to_color."""
    from_color: Color
    to_color: Color
    tolerance: int

    def __post_init__(self):
        require_non_negative_int("tolerance", self.tolerance)

