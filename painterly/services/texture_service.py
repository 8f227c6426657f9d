from __future__ import annotations

import logging
import os

import cv2
import numpy as np
from dotenv import load_dotenv

from ..models.palette import PALETTE, ReferencePalette
from . import blend_service as blend

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def _env_seed() -> int | None:
    raw = os.getenv("TEXTURE_SEED", "").strip()
    return int(raw) if raw else None


class TextureService:
    """
    Atmosphere pass applied to the recoloured image:
        soft-focus blur → watercolour blobs → warm tint → vignette.

    The blob layer is random.  Pass a seed (or set TEXTURE_SEED) for
    reproducible output, or inject a ready ``numpy.random.Generator``.
    """

    BLUR_SIGMA = 0.7

    BLOB_RADIUS_MIN = 20
    BLOB_RADIUS_SPAN = 80
    BLOB_FILL_ALPHA = 0.05
    BLOB_GLOBAL_ALPHA = 0.04

    WARM_TINT = (255, 253, 240)
    WARM_TINT_ALPHA = 0.15

    VIGNETTE_INNER = 0.4   # fraction of the larger side that stays clear
    VIGNETTE_ALPHA = 0.12  # darkening reached at the corners

    def __init__(
        self,
        palette: ReferencePalette = PALETTE,
        *,
        seed: int | None = None,
        blob_count: int | None = None,
    ):
        self.palette = palette
        self.seed = seed if seed is not None else _env_seed()
        self.blob_count = blob_count if blob_count is not None else int(os.getenv("WATERCOLOR_BLOB_COUNT", "30"))

    def make_rng(self) -> np.random.Generator:
        """Fresh generator per run, so runs never share random state."""
        return np.random.default_rng(self.seed)

    # ─── Individual layers ─────────────────────────────────────────
    def soft_focus(self, rgb: np.ndarray) -> np.ndarray:
        return cv2.GaussianBlur(rgb, (0, 0), sigmaX=self.BLUR_SIGMA, sigmaY=self.BLUR_SIGMA)

    def watercolor(self, rgb: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        h, w = rgb.shape[:2]
        colors = self.palette.colors()
        out = rgb.copy()
        for _ in range(self.blob_count):
            cx = int(round(rng.random() * w))
            cy = int(round(rng.random() * h))
            radius = int(round(rng.random() * self.BLOB_RADIUS_SPAN + self.BLOB_RADIUS_MIN))
            color = colors[int(rng.integers(len(colors)))]

            # only the blob's bounding box can change
            x0, x1 = max(0, cx - radius), min(w, cx + radius + 1)
            y0, y1 = max(0, cy - radius), min(h, cy + radius + 1)
            if x0 >= x1 or y0 >= y1:
                continue

            disc = np.zeros((y1 - y0, x1 - x0), np.uint8)
            cv2.circle(disc, (cx - x0, cy - y0), radius, 1, thickness=-1)
            out[y0:y1, x0:x1] = blend.composite(
                out[y0:y1, x0:x1],
                np.asarray(color, np.float32) / 255.0,
                mode="overlay",
                alpha=disc.astype(np.float32) * self.BLOB_FILL_ALPHA,
                global_alpha=self.BLOB_GLOBAL_ALPHA,
            )
        return out

    def warm_tint(self, rgb: np.ndarray) -> np.ndarray:
        return blend.composite(
            rgb,
            np.asarray(self.WARM_TINT, np.float32) / 255.0,
            mode="overlay",
            alpha=self.WARM_TINT_ALPHA,
        )

    def vignette_alpha(self, height: int, width: int) -> np.ndarray:
        """Radial opacity ramp: 0 inside the clear zone, VIGNETTE_ALPHA at the corners."""
        cy, cx = height / 2.0, width / 2.0
        inner = self.VIGNETTE_INNER * max(width, height)
        outer = float(np.hypot(cx, cy))
        yy, xx = np.mgrid[0:height, 0:width].astype(np.float32)
        dist = np.hypot(xx + 0.5 - cx, yy + 0.5 - cy)
        ramp = np.clip((dist - inner) / max(outer - inner, 1e-6), 0.0, 1.0)
        return (ramp * self.VIGNETTE_ALPHA).astype(np.float32)

    def vignette(self, rgb: np.ndarray) -> np.ndarray:
        h, w = rgb.shape[:2]
        return blend.composite(rgb, (0.0, 0.0, 0.0), mode="multiply", alpha=self.vignette_alpha(h, w))

    # ─── Public API ────────────────────────────────────────────────
    def apply(self, pixels: np.ndarray, rng: np.random.Generator | None = None) -> np.ndarray:
        """
        Args:
            pixels (np.ndarray): (H, W, 4) uint8 recoloured buffer.
            rng: random source for the blob layer, defaults to ``make_rng()``.

        Returns:
            (np.ndarray): new (H, W, 4) uint8 buffer, alpha passed through.
        """
        rng = rng if rng is not None else self.make_rng()

        rgb = blend.to_unit(pixels)
        rgb = self.soft_focus(rgb)
        rgb = self.watercolor(rgb, rng)
        rgb = self.warm_tint(rgb)
        rgb = self.vignette(rgb)

        return blend.from_unit(rgb, pixels[..., 3])
