import numpy as np

from painterly.models.palette import PALETTE
from painterly.services.color_service import distance_to, is_near, near_mask


def test_is_near_uses_strict_euclidean_distance():
    assert is_near((0, 0, 0), (3, 4, 0), 5.01)
    assert not is_near((0, 0, 0), (3, 4, 0), 5)
    assert is_near(PALETTE.sky_blue, PALETTE.sky_blue, 1)


def test_near_mask_matches_scalar_version(random_pixels):
    target, thr = PALETTE.grass_green, 120
    mask = near_mask(random_pixels, target, thr)

    assert mask.shape == random_pixels.shape[:2]
    for y, x in [(0, 0), (5, 9), (47, 63), (20, 31)]:
        assert mask[y, x] == is_near(random_pixels[y, x, :3].astype(int), target, thr)


def test_distance_to_reference():
    rgb = np.array([[[0, 0, 0], [3, 4, 0]]], np.uint8)
    np.testing.assert_allclose(distance_to(rgb, (0, 0, 0)), [[0.0, 5.0]])
