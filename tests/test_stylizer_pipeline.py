import threading

import numpy as np
import pytest

from painterly.models.errors import (
    DecodeFailure,
    EncodeFailure,
    PipelineCancelled,
    ProcessingFailure,
)
from painterly.models.palette import PALETTE
from painterly.models.pipeline_state import PipelineState
from painterly.models.transformation_result import SUCCESS_MESSAGE
from painterly.pipeline.stylizer import StylizationPipeline, transform_image
from painterly.services.color_service import distance_to
from painterly.services.image_service import ImageService
from painterly.services.texture_service import TextureService

HAPPY_PATH = [
    PipelineState.IDLE,
    PipelineState.LOADING,
    PipelineState.DETECTING_FACES,
    PipelineState.RECOLORING,
    PipelineState.COMPOSITING_TEXTURE,
    PipelineState.SYNTHESIZING_EDGES,
    PipelineState.ENCODING,
    PipelineState.DONE,
]


@pytest.fixture
def pipeline():
    return StylizationPipeline(
        image_service=ImageService(output_format="PNG"),
        texture_service=TextureService(seed=7),
    )


@pytest.fixture
def photo_bytes(encode_image, portrait_pixels):
    return encode_image(portrait_pixels)


def test_states_visited_in_order(pipeline, photo_bytes):
    seen = []
    job = pipeline.run(photo_bytes, on_state_change=seen.append)

    assert job.history == HAPPY_PATH
    assert seen == HAPPY_PATH[1:]
    assert job.state is PipelineState.DONE
    assert job.error is None


def test_seeded_runs_are_byte_identical(pipeline, photo_bytes):
    assert pipeline.stylize(photo_bytes) == pipeline.stylize(photo_bytes)


def test_injected_rng_runs_are_byte_identical(photo_bytes):
    pipeline = StylizationPipeline()
    first = pipeline.stylize(photo_bytes, rng=np.random.default_rng(3))
    second = pipeline.stylize(photo_bytes, rng=np.random.default_rng(3))
    assert first == second


def test_dimensions_preserved(pipeline, photo_bytes, decode_image, portrait_pixels):
    out = decode_image(pipeline.stylize(photo_bytes))
    assert out.shape == portrait_pixels.shape


def test_face_mask_comes_from_original_pixels(pipeline, photo_bytes):
    job = pipeline.run(photo_bytes)
    assert job.face_mask[:, :20].all()
    assert not job.face_mask[:, 40:].any()


def test_large_sky_photo_end_to_end(make_solid, encode_image, decode_image):
    pipeline = StylizationPipeline(
        image_service=ImageService(max_size=1200, output_format="PNG"),
        texture_service=TextureService(seed=1),
    )
    sky = make_solid(1000, 2000, (110, 180, 235))
    job = pipeline.run(encode_image(sky))

    assert (job.image.width, job.image.height) == (1200, 600)
    assert not job.face_mask.any()

    out = decode_image(job.output)
    assert out.shape == (600, 1200, 4)

    before = distance_to(sky[:1, :1], PALETTE.sky_blue)[0, 0]
    after = distance_to(out, PALETTE.sky_blue)
    assert after.mean() < before

    # outside the vignette every single pixel has moved toward the sky reference
    clear = TextureService().vignette_alpha(600, 1200) == 0.0
    assert (after[clear] < before).all()


def test_cancel_before_start(pipeline, photo_bytes):
    cancel = threading.Event()
    cancel.set()
    seen = []

    with pytest.raises(PipelineCancelled):
        pipeline.run(photo_bytes, cancel_event=cancel, on_state_change=seen.append)
    assert seen == [PipelineState.LOADING, PipelineState.ERROR]


def test_cancel_between_stages(pipeline, photo_bytes):
    cancel = threading.Event()
    seen = []

    def listener(state):
        seen.append(state)
        if state is PipelineState.RECOLORING:
            cancel.set()

    with pytest.raises(PipelineCancelled):
        pipeline.run(photo_bytes, cancel_event=cancel, on_state_change=listener)
    assert seen[-2:] == [PipelineState.RECOLORING, PipelineState.ERROR]


def test_undecodable_input(pipeline):
    seen = []
    with pytest.raises(DecodeFailure):
        pipeline.run(b"not an image", on_state_change=seen.append)
    assert seen == [PipelineState.LOADING, PipelineState.ERROR]


def test_encode_failure_is_terminal(pipeline, photo_bytes, monkeypatch):
    def broken(image):
        raise EncodeFailure("disk full")

    monkeypatch.setattr(pipeline.image_service, "encode", broken)
    seen = []
    with pytest.raises(EncodeFailure):
        pipeline.run(photo_bytes, on_state_change=seen.append)
    assert seen[-2:] == [PipelineState.ENCODING, PipelineState.ERROR]


def test_unexpected_errors_become_processing_failures(pipeline, photo_bytes, monkeypatch):
    def exhausted(pixels, face_mask):
        raise MemoryError("out of memory")

    monkeypatch.setattr(pipeline.edge_service, "synthesize", exhausted)
    with pytest.raises(ProcessingFailure) as info:
        pipeline.run(photo_bytes)
    assert isinstance(info.value.__cause__, MemoryError)


def test_transform_success_record(pipeline, photo_bytes):
    record = pipeline.transform(photo_bytes).to_dict()

    assert record["success"] is True
    assert record["message"] == SUCCESS_MESSAGE
    assert record["method"] == "client-side"
    assert record["transformedImage"].startswith("data:image/png;base64,")


def test_transform_failure_record():
    result = transform_image(b"\x00\x01")

    assert not result.success
    assert result.transformed_image is None
    assert result.message == DecodeFailure.user_message
    assert "transformedImage" not in result.to_dict()


def test_concurrent_runs_do_not_interfere(pipeline, photo_bytes):
    expected = pipeline.stylize(photo_bytes)
    results = [None] * 4

    def work(i):
        results[i] = pipeline.stylize(photo_bytes)

    threads = [threading.Thread(target=work, args=(i,)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert all(r == expected for r in results)
