from io import BytesIO

import numpy as np
import pytest
from PIL import Image as PILImage


def _solid(height, width, rgb, alpha=255):
    pixels = np.empty((height, width, 4), np.uint8)
    pixels[..., :3] = rgb
    pixels[..., 3] = alpha
    return pixels


def _encode(pixels, fmt="PNG"):
    buffer = BytesIO()
    img = PILImage.fromarray(np.ascontiguousarray(pixels))
    if fmt == "JPEG":
        img = img.convert("RGB")
    img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def make_solid():
    """make_solid(h, w, (r, g, b)) → (h, w, 4) uint8 RGBA buffer."""
    return _solid


@pytest.fixture
def encode_image():
    """encode_image(pixels, fmt="PNG") → raster bytes."""
    return _encode


@pytest.fixture
def decode_image():
    def _decode(data):
        with PILImage.open(BytesIO(data)) as img:
            return np.array(img.convert("RGBA"))
    return _decode


@pytest.fixture
def random_pixels():
    rng = np.random.default_rng(1234)
    pixels = rng.integers(0, 256, size=(48, 64, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    return pixels


@pytest.fixture
def portrait_pixels():
    """
    Three vertical bands: skin tone | neutral grey gap | cool blue with the
    same saturation as the skin band.
    """
    pixels = _solid(40, 60, (128, 128, 128))
    pixels[:, :20, :3] = (255, 221, 205)
    pixels[:, 40:, :3] = (205, 221, 255)
    return pixels
