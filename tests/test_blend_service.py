import numpy as np
import pytest

from painterly.services import blend_service as blend


def test_blend_mode_formulas():
    b = np.array([0.25, 0.5, 0.75], np.float32)
    s = np.array([0.5, 0.5, 0.5], np.float32)

    np.testing.assert_allclose(blend.multiply(b, s), [0.125, 0.25, 0.375])
    np.testing.assert_allclose(blend.screen(b, s), [0.625, 0.75, 0.875])
    np.testing.assert_allclose(blend.overlay(b, s), [0.25, 0.5, 0.75])
    np.testing.assert_allclose(blend.overlay(b, np.float32(1.0)), [0.5, 1.0, 1.0])


def test_composite_respects_alpha():
    backdrop = np.full((2, 2, 3), 0.5, np.float32)

    untouched = blend.composite(backdrop, (1.0, 0.0, 0.0), mode="normal", alpha=0.0)
    np.testing.assert_allclose(untouched, backdrop)

    full = blend.composite(backdrop, (1.0, 0.0, 0.0), mode="normal", alpha=1.0)
    np.testing.assert_allclose(full[0, 0], [1.0, 0.0, 0.0])

    half = blend.composite(backdrop, (0.0, 0.0, 0.0), mode="multiply", alpha=1.0, global_alpha=0.5)
    np.testing.assert_allclose(half, 0.25)


def test_composite_with_per_pixel_alpha_does_not_touch_inputs():
    backdrop = np.full((1, 2, 3), 0.5, np.float32)
    alpha = np.array([[0.0, 1.0]], np.float32)
    out = blend.composite(backdrop, (0.0, 0.0, 0.0), mode="multiply", alpha=alpha)

    np.testing.assert_allclose(out[0, 0], 0.5)
    np.testing.assert_allclose(out[0, 1], 0.0)
    np.testing.assert_allclose(backdrop, 0.5)


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        blend.composite(np.zeros((1, 1, 3), np.float32), (0, 0, 0), mode="dissolve")


def test_unit_conversions_keep_alpha(random_pixels):
    rgb = blend.to_unit(random_pixels)
    assert rgb.dtype == np.float32 and rgb.max() <= 1.0
    np.testing.assert_array_equal(blend.from_unit(rgb, random_pixels[..., 3]), random_pixels)
