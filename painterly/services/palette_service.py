import logging
from typing import Sequence, Union

import numpy as np

from ..models.palette import PALETTE, ReferencePalette
from .color_service import near_mask

logger = logging.getLogger(__name__)

_LUMA = np.array([0.299, 0.587, 0.114], dtype=np.float32)


def _blend_toward(
    cur: np.ndarray,
    target: Union[np.ndarray, Sequence[float]],
    amount: float,
    where: np.ndarray,
    channels: slice = slice(0, 3),
) -> None:
    """Linear blend ``cur*(1-a) + target*a`` on the selected pixels, clamped to [0, 255]."""
    target = np.broadcast_to(np.asarray(target, dtype=np.float32), cur.shape)
    mixed = cur[..., channels] * (1.0 - amount) + target[..., channels] * amount
    cur[..., channels] = np.where(where[..., None], np.clip(mixed, 0.0, 255.0), cur[..., channels])


class PaletteService:
    """
    Per-pixel colour remapping toward the reference palette.

    Every step is a whole-array numpy operation, but each one only reads the
    pixel itself (current + original), so the result is identical to running
    the steps pixel by pixel in order.
    """

    FACE_SATURATION = 1.1
    SATURATION = 1.3

    SKY_THR, SKY_SHIFT = 70, 0.15
    GREEN_THR, GREEN_SHIFT = 70, 0.2
    ORANGE_THR, ORANGE_SHIFT = 80, 0.15
    BROWN_THR, BROWN_SHIFT = 60, 0.15
    SKIN_SHIFT = 0.08
    DETAIL_BLEND = 0.4
    HIGHLIGHT_LUMINANCE = 200
    HIGHLIGHT_SHIFT = 0.1

    def __init__(self, palette: ReferencePalette = PALETTE):
        self.palette = palette

    @staticmethod
    def luminance(pixels: np.ndarray) -> np.ndarray:
        return pixels[..., :3].astype(np.float32) @ _LUMA

    def boost_saturation(self, rgb: np.ndarray, lum: np.ndarray, face_mask: np.ndarray) -> np.ndarray:
        factor = np.where(face_mask, self.FACE_SATURATION, self.SATURATION).astype(np.float32)[..., None]
        lum = lum[..., None]
        return np.clip(lum + factor * (rgb - lum), 0.0, 255.0)

    def shift_toward_palette(self, cur: np.ndarray) -> None:
        """
        Sky, foliage, sunset and earth nudges.  Each test looks at the colour
        as left by the previous one, so several may stack on one pixel.
        """
        p = self.palette

        sky = near_mask(cur, p.sky_blue, self.SKY_THR) | near_mask(cur, p.light_blue, self.SKY_THR)
        cur[..., 2] = np.where(sky, np.minimum(255.0, cur[..., 2] * 1.1), cur[..., 2])
        cur[..., 1] = np.where(sky, np.minimum(255.0, cur[..., 1] * 1.05), cur[..., 1])
        _blend_toward(cur, p.sky_blue, self.SKY_SHIFT, sky)

        green = near_mask(cur, p.grass_green, self.GREEN_THR) | near_mask(cur, p.forest_green, self.GREEN_THR)
        green_target = np.where(
            (cur[..., 1] > 160)[..., None],
            np.asarray(p.grass_green, dtype=np.float32),
            np.asarray(p.forest_green, dtype=np.float32),
        )
        _blend_toward(cur, green_target, self.GREEN_SHIFT, green)

        orange = near_mask(cur, p.sunset_orange, self.ORANGE_THR)
        _blend_toward(cur, p.sunset_orange, self.ORANGE_SHIFT, orange)

        brown = near_mask(cur, p.rich_brown, self.BROWN_THR)
        _blend_toward(cur, p.rich_brown, self.BROWN_SHIFT, brown)

    def remap(self, working: np.ndarray, original: np.ndarray, face_mask: np.ndarray) -> np.ndarray:
        """
        Args:
            working  (np.ndarray): (H, W, 4) uint8 pixels to recolour.
            original (np.ndarray): (H, W, 4) uint8 untouched pixels, used to
                restore detail on face pixels.
            face_mask (np.ndarray): (H, W) bool.

        Returns:
            (np.ndarray): new (H, W, 4) uint8 buffer; alpha is passed through.
        """
        if working.shape != original.shape:
            raise ValueError(f"Working {working.shape} and original {original.shape} buffers differ in shape")
        face = np.asarray(face_mask, dtype=bool)
        if face.shape != working.shape[:2]:
            raise ValueError(f"Face mask {face.shape} does not match image {working.shape[:2]}")

        rgb = working[..., :3].astype(np.float32)
        lum = self.luminance(working)

        cur = self.boost_saturation(rgb, lum, face)
        self.shift_toward_palette(cur)

        # Faces: faint skin tint, then give back 40 % of the untouched pixel
        _blend_toward(cur, self.palette.skin_tone, self.SKIN_SHIFT, face)
        _blend_toward(cur, original[..., :3].astype(np.float32), self.DETAIL_BLEND, face)

        highlight = (lum > self.HIGHLIGHT_LUMINANCE) & ~face
        _blend_toward(cur, self.palette.warm_yellow, self.HIGHLIGHT_SHIFT, highlight, channels=slice(0, 2))

        out = np.empty_like(working)
        out[..., :3] = np.clip(np.rint(cur), 0, 255).astype(np.uint8)
        out[..., 3] = working[..., 3]
        return out
