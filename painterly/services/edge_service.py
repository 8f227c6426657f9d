import logging

import cv2
import numpy as np

from ..models.palette import PALETTE, ReferencePalette
from . import blend_service as blend

logger = logging.getLogger(__name__)


class EdgeService:
    """
    Hand-drawn line layer.

    • Sobel gradient of the averaged red/green channels, interior pixels only.
    • Face pixels need a stronger gradient and get a faint, half-transparent
      line; everything else gets a solid dark line.
    • The edge map is softened and multiplied onto the image, followed by a
      faint overlay wash of the outline colour.
    """

    THRESHOLD = 30
    FACE_THRESHOLD = 50
    LINE, FACE_LINE, NO_LINE = 0, 50, 255
    ALPHA, FACE_ALPHA = 255, 100

    EDGE_BLUR_SIGMA = 0.3
    MULTIPLY_ALPHA = 0.12
    OUTLINE_FILL_ALPHA = 0.1
    OUTLINE_GLOBAL_ALPHA = 0.08

    def __init__(self, palette: ReferencePalette = PALETTE):
        self.palette = palette

    @staticmethod
    def gradient_magnitude(pixels: np.ndarray) -> np.ndarray:
        """
        Sobel magnitude of (R + G) / 2.  Only interior values are meaningful;
        the 1-pixel frame depends on cv2's border padding and is ignored.
        """
        rg = (pixels[..., 0].astype(np.float32) + pixels[..., 1].astype(np.float32)) / 2.0
        gx = cv2.Sobel(rg, cv2.CV_32F, 1, 0, ksize=3)
        gy = cv2.Sobel(rg, cv2.CV_32F, 0, 1, ksize=3)
        return np.sqrt(gx * gx + gy * gy)

    def compute_edge_map(self, pixels: np.ndarray, face_mask: np.ndarray) -> np.ndarray:
        """
        Args:
            pixels (np.ndarray): (H, W, 4) uint8 recoloured buffer.
            face_mask (np.ndarray): (H, W) bool.

        Returns:
            (np.ndarray): (H, W, 4) uint8 edge map.  The 1-pixel frame is left
            fully transparent (all zeros).
        """
        h, w = pixels.shape[:2]
        edge_map = np.zeros((h, w, 4), np.uint8)
        if h < 3 or w < 3:
            return edge_map

        mag = self.gradient_magnitude(pixels)[1:-1, 1:-1]
        face = np.asarray(face_mask, dtype=bool)[1:-1, 1:-1]

        threshold = np.where(face, self.FACE_THRESHOLD, self.THRESHOLD)
        is_edge = mag > threshold
        intensity = np.where(
            face,
            np.where(is_edge, self.FACE_LINE, self.NO_LINE),
            np.where(is_edge, self.LINE, self.NO_LINE),
        ).astype(np.uint8)

        inner = edge_map[1:-1, 1:-1]
        inner[..., 0] = inner[..., 1] = inner[..., 2] = intensity
        inner[..., 3] = np.where(face, self.FACE_ALPHA, self.ALPHA)
        return edge_map

    def soften(self, edge_map: np.ndarray):
        """
        Blur the edge map in premultiplied space, like a canvas blur filter.

        Returns:
            (line colour in [0, 1] (H, W, 3), line opacity in [0, 1] (H, W))
        """
        alpha = edge_map[..., 3].astype(np.float32) / 255.0
        premult = blend.to_unit(edge_map) * alpha[..., None]
        stacked = np.dstack([premult, alpha])
        stacked = cv2.GaussianBlur(stacked, (0, 0), sigmaX=self.EDGE_BLUR_SIGMA, sigmaY=self.EDGE_BLUR_SIGMA)

        alpha = np.clip(stacked[..., 3], 0.0, 1.0)
        safe = np.where(alpha > 0, alpha, 1.0)[..., None]
        color = np.where(alpha[..., None] > 0, stacked[..., :3] / safe, 1.0)
        return np.clip(color, 0.0, 1.0).astype(np.float32), alpha

    def synthesize(self, pixels: np.ndarray, face_mask: np.ndarray) -> np.ndarray:
        """
        Add the line layer to *pixels*.

        Returns:
            (np.ndarray): new (H, W, 4) uint8 buffer.  Its 1-pixel frame keeps
            the input values.
        """
        out = pixels.copy()
        h, w = pixels.shape[:2]
        if h < 3 or w < 3:
            return out

        edge_map = self.compute_edge_map(pixels, face_mask)
        line_color, line_alpha = self.soften(edge_map)

        rgb = blend.to_unit(pixels)
        rgb = blend.composite(rgb, line_color, mode="multiply",
                              alpha=line_alpha, global_alpha=self.MULTIPLY_ALPHA)
        rgb = blend.composite(rgb, np.asarray(self.palette.dark_outline, np.float32) / 255.0,
                              mode="overlay", alpha=self.OUTLINE_FILL_ALPHA,
                              global_alpha=self.OUTLINE_GLOBAL_ALPHA)

        lined = blend.from_unit(rgb, pixels[..., 3])
        out[1:-1, 1:-1] = lined[1:-1, 1:-1]

        logger.debug(f"Edge map: {int((edge_map[1:-1, 1:-1, 0] < 255).sum())} line pixels")
        return out
