from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple
import numbers

from .errors import InvalidFormatError


def _is_byte(value) -> bool:
    # bool is an int subclass; True/False are never valid components
    return isinstance(value, numbers.Integral) and not isinstance(value, bool) and 0 <= value <= 255


@dataclass(frozen=True)
class Color:
    """
    Immutable RGB value object, each component an int in [0, 255].
    Produced by hex parsing or by sampling a pixel buffer.
    """
    r: int
    g: int
    b: int

    def __post_init__(self):
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            if not _is_byte(value):
                raise InvalidFormatError(
                    f"Color component {name}={value!r} must be an int in [0, 255]"
                )
            object.__setattr__(self, name, int(value))

    def as_tuple(self) -> Tuple[int, int, int]:
        return self.r, self.g, self.b

    def to_hex(self) -> str:
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"
