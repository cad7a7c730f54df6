class BackgroundRemovalError(ValueError):
    """
    Base class for every recoverable error raised by the core.

    Callers (CLI / HTTP) catch this at their boundary and show the message.
    """
    error_type = "background_removal_error"


class InvalidFormatError(BackgroundRemovalError):
    """Malformed hex color string or color component out of range."""
    error_type = "invalid_format"


class InvalidCoordinateError(BackgroundRemovalError):
    """Seed / sample point outside the pixel buffer."""
    error_type = "invalid_coordinate"


class EmptyBufferError(BackgroundRemovalError):
    """No pixels to work on (nothing loaded, or a zero-sized dimension)."""
    error_type = "empty_buffer"


class DimensionMismatchError(BackgroundRemovalError):
    """Mask or buffer dimensions disagree with the source buffer."""
    error_type = "dimension_mismatch"


class InvalidOptionsError(BackgroundRemovalError):
    """Negative or non-integer tolerance / smoothing / feather."""
    error_type = "invalid_options"
