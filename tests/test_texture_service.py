import numpy as np
import pytest

from painterly.services.texture_service import TextureService


def test_seeded_texture_is_reproducible(random_pixels):
    service = TextureService(seed=11)
    first = service.apply(random_pixels)
    second = service.apply(random_pixels)

    np.testing.assert_array_equal(first, second)


def test_injected_generator_is_used(random_pixels):
    service = TextureService()
    a = service.apply(random_pixels, rng=np.random.default_rng(5))
    b = service.apply(random_pixels, rng=np.random.default_rng(5))

    np.testing.assert_array_equal(a, b)


def test_seed_read_from_environment(monkeypatch):
    monkeypatch.setenv("TEXTURE_SEED", "42")
    monkeypatch.setenv("WATERCOLOR_BLOB_COUNT", "12")
    service = TextureService()

    assert service.seed == 42
    assert service.blob_count == 12


def test_unseeded_by_default(monkeypatch):
    monkeypatch.delenv("TEXTURE_SEED", raising=False)
    assert TextureService().seed is None


def test_shape_dtype_and_alpha_preserved(random_pixels):
    random_pixels[..., 3] = 200
    out = TextureService(seed=1).apply(random_pixels)

    assert out.shape == random_pixels.shape
    assert out.dtype == np.uint8
    assert (out[..., 3] == 200).all()


def test_input_not_modified(random_pixels):
    before = random_pixels.copy()
    TextureService(seed=1).apply(random_pixels)
    np.testing.assert_array_equal(random_pixels, before)


def test_vignette_ramp():
    alpha = TextureService().vignette_alpha(100, 200)

    assert alpha[50, 100] == 0.0
    assert alpha[0, 0] == pytest.approx(0.12, abs=0.01)
    assert alpha[99, 199] == pytest.approx(0.12, abs=0.01)
    assert alpha.max() <= 0.12 + 1e-6
    # clear zone: 40 % of the larger side around the centre
    assert (alpha[50, 30:170] == 0.0).all()


def test_warm_tint_and_vignette_on_flat_grey(make_solid):
    grey = make_solid(120, 160, (128, 128, 128))
    out = TextureService(seed=3, blob_count=0).apply(grey).astype(int)

    centre = out[60, 80, :3]
    corner = out[0, 0, :3]
    assert centre[0] > 128           # warm overlay lifts the greys
    assert centre[0] >= centre[2]    # ... and more on the warm side
    assert (corner < centre).all()   # vignette darkens the corners
