import logging

import cv2
import numpy as np

from ..models.palette import PALETTE
from .color_service import near_mask

logger = logging.getLogger(__name__)


class FaceRegionService:
    """
    Heuristic skin / face region detector.

    • One pass of per-pixel skin tests over the *original* pixels.
    • Every hit is dilated by a square neighbourhood (clamped at the borders)
      so the features surrounding skin (eyes, brows, lips) are covered too.
    """

    SKIN_DISTANCE_THR = 60
    DILATION_RADIUS = 5

    def __init__(self, dilation_radius: int = DILATION_RADIUS):
        self.dilation_radius = dilation_radius

    @classmethod
    def skin_pixels(cls, pixels: np.ndarray) -> np.ndarray:
        """
        Args:
            pixels (np.ndarray): (H, W, 3|4) uint8 buffer.

        Returns:
            (np.ndarray): (H, W) bool, True where the skin heuristic fires.
        """
        rgb = pixels[..., :3].astype(np.int16)
        r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
        spread = rgb.max(axis=-1) - rgb.min(axis=-1)

        return (
            (r > 95) & (g > 40) & (b > 20) &          # lower bounds
            (r > g) & (r > b) &                       # red is the top channel
            (r - g > 15) & (r - b > 15) &             # ... by a clear margin
            (spread > 15) &                           # saturated enough
            near_mask(rgb, PALETTE.skin_tone, cls.SKIN_DISTANCE_THR)
        )

    def dilate(self, hits: np.ndarray) -> np.ndarray:
        if self.dilation_radius <= 0 or not hits.any():
            return hits.copy()
        size = 2 * self.dilation_radius + 1
        kernel = np.ones((size, size), np.uint8)
        # cv2 pads dilation with the neutral value, so borders clamp naturally
        grown = cv2.dilate(hits.astype(np.uint8), kernel, iterations=1)
        return grown.astype(bool)

    def detect(self, pixels: np.ndarray) -> np.ndarray:
        """
        Build the face mask for an image.  A brand-new read-only array is
        returned; an all-False mask is a valid answer.
        """
        hits = self.skin_pixels(pixels)
        mask = self.dilate(hits)
        mask.flags.writeable = False

        logger.debug(f"Face mask: {int(hits.sum())} skin hits, {int(mask.sum())} masked pixels")
        return mask
