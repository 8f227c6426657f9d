from typing import Sequence
import math

import numpy as np


def is_near(color: Sequence[float], target: Sequence[float], threshold: float) -> bool:
    """
    True iff the Euclidean RGB distance between *color* and *target*
    is strictly below *threshold*.
    """
    distance = math.sqrt(
        (color[0] - target[0]) ** 2 +
        (color[1] - target[1]) ** 2 +
        (color[2] - target[2]) ** 2
    )
    return distance < threshold


def near_mask(rgb: np.ndarray, target: Sequence[float], threshold: float) -> np.ndarray:
    """
    Vectorised ``is_near`` over a (..., 3) buffer.

    Returns:
        bool array with the buffer's leading shape.
    """
    diff = rgb[..., :3].astype(np.float32) - np.asarray(target, dtype=np.float32)
    # compare squared distances, avoids a sqrt per pixel
    return np.einsum("...c,...c->...", diff, diff) < np.float32(threshold) ** 2


def distance_to(rgb: np.ndarray, target: Sequence[float]) -> np.ndarray:
    """Per-pixel Euclidean distance of a (..., 3) buffer to *target*."""
    diff = rgb[..., :3].astype(np.float32) - np.asarray(target, dtype=np.float32)
    return np.sqrt(np.einsum("...c,...c->...", diff, diff))
