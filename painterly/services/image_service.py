from __future__ import annotations

import base64
import os
from pathlib import Path
from typing import Iterable, Iterator, Union

import cv2
import numpy as np
from dotenv import load_dotenv

from ..models.image import Image
from ..repositories.image_repository import ImageRepository

# Load environment variables
load_dotenv()

_MIME_TYPES = {"JPEG": "image/jpeg", "JPG": "image/jpeg", "PNG": "image/png"}


class ImageService:
    """I/O and geometry helpers.  No stylization logic here."""
    def __init__(self,
                 max_size: int | None = None,
                 output_format: str | None = None,
                 quality: int | None = None):
        self.MAX_SIZE = max_size or int(os.getenv("MAX_IMAGE_SIZE", "1200"))
        self.OUTPUT_FORMAT = (output_format or os.getenv("OUTPUT_FORMAT", "JPEG")).upper()
        self.QUALITY = quality or int(os.getenv("JPEG_QUALITY", "95"))
        self.image_repository = ImageRepository()

    def create_image(self, pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        return self.image_repository.create_image(pixels, path)

    def decode(self, data: bytes) -> Image:
        """Decode raster bytes into an RGBA Image."""
        return self.image_repository.decode(data)

    def load(self, path: str | Path) -> Image:
        """Load a single image from disk into an Image object."""
        return self.image_repository.load(path)

    def stream_paths(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Path]:
        return self.image_repository.iter_dir(folder, recursive=recursive, exts=exts)

    def get_image_dimensions(self, img: Image):
        return self.image_repository.retrieve_image_dimensions(img)

    def fit_dimensions(self, width: int, height: int) -> tuple[int, int]:
        """
        Clamp (width, height) so neither side exceeds MAX_SIZE, keeping the
        aspect ratio.  Never upscales.
        """
        if width <= self.MAX_SIZE and height <= self.MAX_SIZE:
            return width, height
        if width > height:
            return self.MAX_SIZE, max(1, round(height * self.MAX_SIZE / width))
        return max(1, round(width * self.MAX_SIZE / height)), self.MAX_SIZE

    def downscale_if_needed(self, img: Image) -> Image:
        """
        Return a new Image at the clamped size.  The pixels are always a fresh
        array, even when no resize was needed.
        """
        height, width = self.get_image_dimensions(img)
        new_w, new_h = self.fit_dimensions(width, height)
        if (new_w, new_h) == (width, height):
            pixels = img.pixels.copy()
        else:
            pixels = cv2.resize(img.pixels, (new_w, new_h), interpolation=cv2.INTER_AREA)
        return self.create_image(pixels, img.path)

    def prepare_working_copy(self, img: Image) -> Image:
        """
        Clamp to MAX_SIZE and attach an untouched copy as ``original_pixels``.
        """
        working = self.downscale_if_needed(img)
        self.image_repository.save_original_pixels(working)
        return working

    def update_pixels(self, image: Image, new_pixels: np.ndarray) -> None:
        """
        Business-level method to replace the current image pixels.
        """
        self.image_repository.set_pixels(image, new_pixels)

    def encode(self, image: Image) -> bytes:
        return self.image_repository.encode(image, fmt=self.OUTPUT_FORMAT, quality=self.QUALITY)

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES.get(self.OUTPUT_FORMAT, "application/octet-stream")

    def to_data_url(self, data: bytes) -> str:
        """Wrap encoded bytes as a data URL, the consumer's wire format."""
        encoded = base64.b64encode(data).decode("utf-8")
        return f"data:{self.mime_type};base64,{encoded}"

    def save(self, data: bytes, path: str | Path) -> Path:
        """
        Business-level method to write encoded output bytes to disk.
        """
        return self.image_repository.save(data, path)
