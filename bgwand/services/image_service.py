from pathlib import Path
from typing import Union
import logging
import os

import cv2
import numpy as np
from dotenv import load_dotenv

from ..models.color import Color
from ..models.image import Image
from ..repositories.image_repository import ImageRepository

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class ImageService:
    """I/O helpers.  No segmentation logic here."""
    def __init__(self):
        self.MAX_WIDTH = int(os.getenv("MAX_IMAGE_WIDTH", "350"))
        self.MAX_HEIGHT = int(os.getenv("MAX_IMAGE_HEIGHT", "350"))
        self.image_repository = ImageRepository()

    def create_image(self, pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        return self.image_repository.create_image(pixels, path)

    def from_buffer(self, buffer, width: int, height: int) -> Image:
        """Wrap a flat RGBA byte sequence (canvas-style) in an Image."""
        return self.create_image(self.image_repository.from_buffer(buffer, width, height))

    def load(self, path: Union[str, Path]) -> Image:
        """Load a single image from disk into an Image object."""
        return self.image_repository.load(path)

    def decode(self, data: bytes) -> Image:
        return self.image_repository.decode(data)

    def save(self, image: Image) -> None:
        """
        Business-level method to save the image (always PNG, alpha kept).
        """
        self.image_repository.save(image)

    def encode_png(self, image: Image) -> bytes:
        return self.image_repository.encode_png(image)

    def get_image_dimensions(self, img: Image):
        return self.image_repository.retrieve_image_dimensions(img)

    def sample_pixel(self, img: Image, x: int, y: int) -> Color:
        return self.image_repository.sample_pixel(img, x, y)

    @staticmethod
    def calculate_dimensions(width: int, height: int, max_width: int, max_height: int):
        """
        Largest (w, h) with the same aspect ratio that fits the box.
        Images that already fit are left alone.
        """
        if width <= max_width and height <= max_height:
            return width, height
        ratio = min(max_width / width, max_height / height)
        return max(1, int(width * ratio)), max(1, int(height * ratio))

    def fit_within(self, img: Image, max_width: int = None, max_height: int = None) -> Image:
        """
        Downscale to the interactive working size (350x350 by default) and
        return a *new* Image; the segmentation cost grows with pixel count.
        """
        max_width = max_width or self.MAX_WIDTH
        max_height = max_height or self.MAX_HEIGHT
        width, height = self.get_image_dimensions(img)
        new_w, new_h = self.calculate_dimensions(width, height, max_width, max_height)
        if (new_w, new_h) == (width, height):
            return img

        logger.info(f"Resizing {width}x{height} → {new_w}x{new_h}")
        resized = cv2.resize(img.pixels, (new_w, new_h), interpolation=cv2.INTER_AREA)
        return self.create_image(np.ascontiguousarray(resized), img.path)

    def preserve_original_state(self, image: Image) -> None:
        """
        Preserve the current image state so it can be restored by reset().
        """
        self.image_repository.save_original_pixels(image)

    def reset(self, image: Image) -> bool:
        """
        Restore the pixels captured by preserve_original_state().
        Returns False when there is nothing to restore.
        """
        if image.original_pixels is None:
            return False
        self.image_repository.set_pixels(image, image.original_pixels.copy())
        return True
