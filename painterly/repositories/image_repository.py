from __future__ import annotations
from io import BytesIO
from pathlib import Path
from typing import Union, Iterable, Iterator
import logging
import os

import numpy as np
from PIL import Image as PILImage, ImageOps, UnidentifiedImageError
from dotenv import load_dotenv

from ..models.image import Image
from ..models.errors import DecodeFailure, EncodeFailure

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

_PIL_FORMATS = {"JPEG": "JPEG", "JPG": "JPEG", "PNG": "PNG"}


class ImageRepository:
    """
    Handles byte / file I/O and pixel updates for Image entities.
    Everything that touches Pillow lives here.
    """
    def __init__(self):
        self.VALID_EXTS = {
            ext.strip().lower()
            for ext in os.getenv("VALID_IMAGE_EXTENSIONS", ".jpg,.jpeg,.png").split(",")
            if ext.strip()
        }

    @staticmethod
    def create_image(pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        if path is None:
            return Image(pixels)
        return Image(pixels=pixels, path=Path(path))

    def retrieve_image_dimensions(self, img: Image):
        return img.pixels.shape[:2]

    @staticmethod
    def _to_rgba_array(pil_img: PILImage.Image) -> np.ndarray:
        # Honour camera orientation the way browsers do when drawing an <img>.
        pil_img = ImageOps.exif_transpose(pil_img)
        if pil_img.mode != "RGBA":
            pil_img = pil_img.convert("RGBA")
        return np.array(pil_img, dtype=np.uint8)

    @staticmethod
    def decode(data: bytes) -> Image:
        """Decode raw raster bytes (JPEG / PNG / anything Pillow reads) to RGBA."""
        if not data:
            raise DecodeFailure("Empty image payload")
        try:
            with PILImage.open(BytesIO(data)) as pil_img:
                pil_img.load()
                arr = ImageRepository._to_rgba_array(pil_img)
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError, PILImage.DecompressionBombError) as err:
            raise DecodeFailure(f"Could not decode image bytes: {err}") from err

        if arr.ndim != 3 or arr.shape[0] == 0 or arr.shape[1] == 0:
            raise DecodeFailure(f"Decoded image has unusable shape {arr.shape}")
        return Image(pixels=arr)

    @staticmethod
    def load(path: Union[str, Path]) -> Image:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Image not found or unreadable: {path}")

        img = ImageRepository.decode(path.read_bytes())
        img.path = path
        return img

    @staticmethod
    def encode(image: Image, fmt: str = "JPEG", quality: int = 95) -> bytes:
        """Serialise pixels to JPEG (alpha dropped) or PNG bytes."""
        pil_format = _PIL_FORMATS.get(fmt.upper())
        if pil_format is None:
            raise EncodeFailure(f"Unsupported output format: {fmt}")

        try:
            pil_img = PILImage.fromarray(np.ascontiguousarray(image.pixels))
            buffer = BytesIO()
            if pil_format == "JPEG":
                pil_img.convert("RGB").save(buffer, format="JPEG", quality=quality)
            else:
                pil_img.save(buffer, format="PNG")
        except (OSError, ValueError, TypeError) as err:
            raise EncodeFailure(f"Could not encode image as {pil_format}: {err}") from err
        return buffer.getvalue()

    @staticmethod
    def save(data: bytes, path: Union[str, Path]) -> Path:
        """Write encoded bytes to path, creating missing parent folders."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    @staticmethod
    def set_pixels(image: Image, new_pixels: np.ndarray) -> None:
        image.pixels = new_pixels

    @staticmethod
    def save_original_pixels(image: Image) -> None:
        """Keep a separate copy of the current pixels as the untouched original"""
        if image.original_pixels is None:
            image.original_pixels = image.pixels.copy()

    def iter_dir(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Path]:
        """
        Yield image paths one at a time.  Nothing accumulates in memory.
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise NotADirectoryError(folder)

        allowed = {e.lower() for e in (exts or self.VALID_EXTS)}
        pattern = "**/*" if recursive else "*"

        for p in sorted(folder.glob(pattern)):
            if not p.is_file():
                continue
            if p.suffix.lower() not in allowed:
                logger.debug(f"Skipping due to extension: {p}")
                continue
            yield p
