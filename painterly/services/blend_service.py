"""
Blend modes and layer compositing.

All functions work on float32 arrays in [0, 1].  Blend functions are the
separable W3C formulas B(backdrop, source); ``composite`` then mixes the
blended colour over an opaque backdrop:

    result = backdrop * (1 - a) + B(backdrop, source) * a

where ``a`` is the layer alpha times the global alpha.
"""
from typing import Callable, Dict, Sequence, Union

import numpy as np

BlendFn = Callable[[np.ndarray, np.ndarray], np.ndarray]


def normal(backdrop: np.ndarray, source: np.ndarray) -> np.ndarray:
    return np.broadcast_to(source, np.broadcast(backdrop, source).shape)


def multiply(backdrop: np.ndarray, source: np.ndarray) -> np.ndarray:
    return backdrop * source


def screen(backdrop: np.ndarray, source: np.ndarray) -> np.ndarray:
    return backdrop + source - backdrop * source


def overlay(backdrop: np.ndarray, source: np.ndarray) -> np.ndarray:
    # hard-light with the layers swapped: the backdrop picks the branch
    return np.where(
        backdrop <= 0.5,
        2.0 * backdrop * source,
        1.0 - 2.0 * (1.0 - backdrop) * (1.0 - source),
    )


BLEND_MODES: Dict[str, BlendFn] = {
    "normal": normal,
    "source-over": normal,
    "multiply": multiply,
    "screen": screen,
    "overlay": overlay,
}


def to_unit(pixels: np.ndarray) -> np.ndarray:
    """uint8 RGB(A) → float32 RGB in [0, 1]."""
    return pixels[..., :3].astype(np.float32) / 255.0


def from_unit(rgb: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    """float32 RGB in [0, 1] + uint8 alpha → uint8 RGBA."""
    rgb_u8 = np.clip(np.rint(rgb * 255.0), 0, 255).astype(np.uint8)
    return np.dstack([rgb_u8, alpha])


def composite(
    backdrop: np.ndarray,
    source: Union[np.ndarray, Sequence[float]],
    *,
    mode: str = "normal",
    alpha: Union[np.ndarray, float] = 1.0,
    global_alpha: float = 1.0,
) -> np.ndarray:
    """
    Composite *source* onto an opaque *backdrop*.

    Args:
        backdrop: (H, W, 3) float32 in [0, 1].
        source:   (H, W, 3) float32, or a single RGB colour in [0, 1].
        mode:     key of ``BLEND_MODES``.
        alpha:    per-pixel (H, W) or scalar layer opacity in [0, 1].
        global_alpha: extra opacity applied to the whole layer.

    Returns:
        New (H, W, 3) float32 array; inputs are not modified.
    """
    try:
        blend = BLEND_MODES[mode]
    except KeyError:
        raise ValueError(f"Unknown blend mode: {mode}") from None

    source = np.asarray(source, dtype=np.float32)
    a = np.asarray(alpha, dtype=np.float32) * np.float32(global_alpha)
    if a.ndim == 2:
        a = a[..., None]

    blended = blend(backdrop, source)
    out = backdrop * (1.0 - a) + blended * a
    return np.clip(out, 0.0, 1.0).astype(np.float32)
