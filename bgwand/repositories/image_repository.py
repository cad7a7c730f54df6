from pathlib import Path
from typing import Union
from io import BytesIO
import logging
import numbers
import os

import numpy as np
import cv2
from PIL import Image as PILImage
from dotenv import load_dotenv

from ..models.image import Image
from ..models.color import Color
from ..models.errors import (
    DimensionMismatchError,
    EmptyBufferError,
    InvalidCoordinateError,
)

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class ImageRepository:
    """
    Handles file I/O and pixel-buffer plumbing for Image entities.
    Everything that touches OpenCV or Pillow lives here.
    """
    def __init__(self):
        raw = os.getenv("VALID_IMAGE_EXTENSIONS", ".png,.jpg,.jpeg,.bmp,.webp,.gif")
        self.VALID_EXTS = {ext.strip().lower() for ext in raw.split(",") if ext.strip()}

    @staticmethod
    def create_image(pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        if path is None:
            return Image(pixels)
        return Image(pixels=pixels, path=Path(path))

    @staticmethod
    def retrieve_image_dimensions(img: Image):
        """Returns (width, height)."""
        return img.width, img.height

    # ─── buffer validation / adaptation ───────────────────────────────
    @staticmethod
    def validate_rgba(pixels: np.ndarray) -> np.ndarray:
        """
        Check that *pixels* is a non-empty (H, W, 4) uint8 buffer.
        Returns a C-contiguous view (copy only if needed).
        """
        if pixels is None:
            raise EmptyBufferError("No pixel buffer available")
        if not isinstance(pixels, np.ndarray):
            raise DimensionMismatchError(f"Expected a numpy array, got {type(pixels).__name__}")
        if pixels.size == 0:
            raise EmptyBufferError("Pixel buffer is empty")
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise DimensionMismatchError(f"Expected (H, W, 4) RGBA pixels, got shape {pixels.shape}")
        if pixels.dtype != np.uint8:
            raise DimensionMismatchError(f"Expected uint8 pixels, got {pixels.dtype}")
        return np.ascontiguousarray(pixels)

    @staticmethod
    def from_buffer(buffer, width: int, height: int) -> np.ndarray:
        """
        Turn a flat row-major RGBA byte sequence into an (H, W, 4) array.
        """
        if width < 1 or height < 1:
            raise EmptyBufferError(f"Invalid dimensions {width}x{height}")
        if isinstance(buffer, (bytes, bytearray, memoryview)):
            flat = np.frombuffer(buffer, dtype=np.uint8)
        else:
            flat = np.asarray(buffer, dtype=np.uint8).reshape(-1)
        if flat.size == 0:
            raise EmptyBufferError("Pixel buffer is empty")
        expected = width * height * 4
        if flat.size != expected:
            raise DimensionMismatchError(
                f"Buffer has {flat.size} samples, expected {expected} for {width}x{height} RGBA"
            )
        return flat.reshape(height, width, 4).copy()

    @staticmethod
    def to_rgba(arr: np.ndarray) -> np.ndarray:
        """
        OpenCV decode output (gray / BGR / BGRA) → RGBA uint8.
        Opaque inputs get alpha 255.
        """
        if arr.dtype == np.uint16:
            # 16-bit PNG / TIFF
            arr = (arr >> 8).astype(np.uint8)
        if arr.ndim == 2:
            return cv2.cvtColor(arr, cv2.COLOR_GRAY2RGBA)
        if arr.shape[2] == 3:
            return cv2.cvtColor(arr, cv2.COLOR_BGR2RGBA)
        return cv2.cvtColor(arr, cv2.COLOR_BGRA2RGBA)

    # ─── I/O ──────────────────────────────────────────────────────────
    def load(self, path: Union[str, Path]) -> Image:
        path = Path(path)
        if path.suffix.lower() not in self.VALID_EXTS:
            logger.warning(f"Unexpected image extension {path.suffix!r} for {path}")

        arr = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if arr is None:
            raise FileNotFoundError(f"Image not found or unreadable: {path}")

        pixels = self.to_rgba(arr)
        logger.debug(f"Loaded {path} → {pixels.shape[1]}x{pixels.shape[0]}")
        return Image(pixels=pixels, path=path)

    def decode(self, data: bytes) -> Image:
        """Decode an in-memory encoded image (e.g. an HTTP upload)."""
        if not data:
            raise EmptyBufferError("No image data received")
        arr = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        if arr is None:
            raise ValueError("Uploaded data is not a decodable image")
        return Image(pixels=self.to_rgba(arr))

    @staticmethod
    def encode_png(image: Image) -> bytes:
        buffer = BytesIO()
        PILImage.fromarray(image.pixels).save(buffer, format="PNG")
        return buffer.getvalue()

    @staticmethod
    def save(image: Image) -> None:
        if image.path is None:
            raise ValueError("Image has no path to save to")
        Path(image.path).parent.mkdir(parents=True, exist_ok=True)
        PILImage.fromarray(image.pixels).save(image.path, format="PNG")

    # ─── pixel access ─────────────────────────────────────────────────
    @staticmethod
    def check_point(x: int, y: int, width: int, height: int):
        """
        Validate buffer coordinates and return them as plain ints.
        Non-integers and out-of-bounds points raise InvalidCoordinateError.
        """
        for value in (x, y):
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise InvalidCoordinateError(f"Point ({x!r}, {y!r}) must have integer coordinates")
        if not (0 <= x < width and 0 <= y < height):
            raise InvalidCoordinateError(f"Point ({x}, {y}) is outside the {width}x{height} image")
        return int(x), int(y)

    @staticmethod
    def sample_pixel(image: Image, x: int, y: int) -> Color:
        """
        Color at (x, y) in buffer coordinates.  No clamping.
        """
        if image.pixels is None or image.pixels.size == 0:
            raise EmptyBufferError("No image loaded")
        h, w = image.pixels.shape[:2]
        x, y = ImageRepository.check_point(x, y, w, h)
        r, g, b = image.pixels[y, x, :3]
        return Color(int(r), int(g), int(b))

    @staticmethod
    def set_pixels(image: Image, new_pixels: np.ndarray) -> None:
        image.pixels = new_pixels

    @staticmethod
    def save_original_pixels(image: Image) -> None:
        """Save current pixels as original for later reset"""
        if image.original_pixels is None:
            image.original_pixels = image.pixels.copy()
