"""
Painterly Stylizer Pipeline
Turns a photo into a soft, hand-painted looking picture:

    load → downscale → detect faces → recolour → texture / vignette
         → line work → encode

Every run gets its own StylizationJob holding the buffers and the state
machine, so one pipeline object can serve many images concurrently.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

import numpy as np

from ..models.errors import (
    PipelineCancelled,
    ProcessingFailure,
    StylizationError,
)
from ..models.image import Image
from ..models.pipeline_state import PipelineState
from ..models.transformation_result import TransformationResult
from ..services.edge_service import EdgeService
from ..services.face_region_service import FaceRegionService
from ..services.image_service import ImageService
from ..services.palette_service import PaletteService
from ..services.texture_service import TextureService

logger = logging.getLogger(__name__)

StateListener = Callable[[PipelineState], None]

_NEXT_STATE = {
    PipelineState.IDLE: PipelineState.LOADING,
    PipelineState.LOADING: PipelineState.DETECTING_FACES,
    PipelineState.DETECTING_FACES: PipelineState.RECOLORING,
    PipelineState.RECOLORING: PipelineState.COMPOSITING_TEXTURE,
    PipelineState.COMPOSITING_TEXTURE: PipelineState.SYNTHESIZING_EDGES,
    PipelineState.SYNTHESIZING_EDGES: PipelineState.ENCODING,
    PipelineState.ENCODING: PipelineState.DONE,
}


class StylizationJob:
    """State and buffers of one stylization run."""

    def __init__(self, on_state_change: Optional[StateListener] = None):
        self.state = PipelineState.IDLE
        self.history: List[PipelineState] = [PipelineState.IDLE]
        self.error: StylizationError | None = None
        self.image: Image | None = None          # working buffer
        self.face_mask: np.ndarray | None = None
        self.output: bytes | None = None
        self._on_state_change = on_state_change

    def _enter(self, state: PipelineState) -> None:
        self.state = state
        self.history.append(state)
        logger.debug(f"Pipeline state → {state.value}")
        if self._on_state_change is not None:
            self._on_state_change(state)

    def advance(self) -> PipelineState:
        nxt = _NEXT_STATE.get(self.state)
        if nxt is None:
            raise ProcessingFailure(f"No transition out of state {self.state.value}")
        self._enter(nxt)
        return nxt

    def fail(self, error: StylizationError) -> None:
        if self.state is PipelineState.IDLE or self.state.is_terminal:
            raise ProcessingFailure(f"Cannot fail a run in state {self.state.value}") from error
        self.error = error
        self.image = None
        self.output = None
        self._enter(PipelineState.ERROR)


class StylizationPipeline:
    """
    Orchestrates the stylization services.  Holds no per-image state.
    """

    def __init__(self,
                 *,
                 image_service: ImageService | None = None,
                 face_region_service: FaceRegionService | None = None,
                 palette_service: PaletteService | None = None,
                 texture_service: TextureService | None = None,
                 edge_service: EdgeService | None = None):
        self.image_service = image_service or ImageService()
        self.face_region_service = face_region_service or FaceRegionService()
        self.palette_service = palette_service or PaletteService()
        self.texture_service = texture_service or TextureService()
        self.edge_service = edge_service or EdgeService()

    # ─── Stages ────────────────────────────────────────────────────
    def _load(self, job: StylizationJob, raster_bytes: bytes, **_) -> None:
        decoded = self.image_service.decode(raster_bytes)
        job.image = self.image_service.prepare_working_copy(decoded)
        logger.info(f"Loaded {decoded.width}x{decoded.height} image, working at "
                    f"{job.image.width}x{job.image.height}")

    def _detect_faces(self, job: StylizationJob, **_) -> None:
        job.face_mask = self.face_region_service.detect(job.image.original_pixels)

    def _recolor(self, job: StylizationJob, **_) -> None:
        recolored = self.palette_service.remap(job.image.pixels, job.image.original_pixels, job.face_mask)
        self.image_service.update_pixels(job.image, recolored)

    def _composite_texture(self, job: StylizationJob, rng: np.random.Generator | None = None, **_) -> None:
        textured = self.texture_service.apply(job.image.pixels, rng=rng)
        self.image_service.update_pixels(job.image, textured)

    def _synthesize_edges(self, job: StylizationJob, **_) -> None:
        lined = self.edge_service.synthesize(job.image.pixels, job.face_mask)
        self.image_service.update_pixels(job.image, lined)

    def _encode(self, job: StylizationJob, **_) -> None:
        job.output = self.image_service.encode(job.image)

    _STAGES = {
        PipelineState.LOADING: _load,
        PipelineState.DETECTING_FACES: _detect_faces,
        PipelineState.RECOLORING: _recolor,
        PipelineState.COMPOSITING_TEXTURE: _composite_texture,
        PipelineState.SYNTHESIZING_EDGES: _synthesize_edges,
        PipelineState.ENCODING: _encode,
    }

    # ─── Public API ────────────────────────────────────────────────
    def run(self,
            raster_bytes: bytes,
            *,
            cancel_event: threading.Event | None = None,
            rng: np.random.Generator | None = None,
            on_state_change: Optional[StateListener] = None) -> StylizationJob:
        """
        Run every stage once, in order.

        Args:
            raster_bytes: already validated JPEG / PNG bytes.
            cancel_event: checked between stages; when set the run stops with
                PipelineCancelled.
            rng: random source for the texture stage (seeded generator for
                reproducible output).
            on_state_change: called with each new state.

        Returns:
            The finished job (state DONE, ``output`` holds the encoded bytes).

        Raises:
            StylizationError: DecodeFailure, EncodeFailure, ProcessingFailure or
            PipelineCancelled.  The job is left in state ERROR with no output.
        """
        job = StylizationJob(on_state_change)
        try:
            while job.advance() is not PipelineState.DONE:
                if cancel_event is not None and cancel_event.is_set():
                    raise PipelineCancelled(f"Cancelled before {job.state.value}")
                stage = self._STAGES[job.state]
                stage(self, job, raster_bytes=raster_bytes, rng=rng)
        except StylizationError as err:
            job.fail(err)
            raise
        except Exception as err:
            failure = ProcessingFailure(f"{job.state.value} failed: {err}")
            job.fail(failure)
            raise failure from err

        logger.info(f"Stylization done: {len(job.output)} bytes")
        return job

    def stylize(self, raster_bytes: bytes, **kwargs) -> bytes:
        """Raster bytes in, stylized raster bytes out."""
        return self.run(raster_bytes, **kwargs).output

    def transform(self, raster_bytes: bytes, **kwargs) -> TransformationResult:
        """
        Like ``stylize`` but never raises for pipeline errors: failures come
        back as an unsuccessful TransformationResult with a friendly message.
        """
        try:
            output = self.stylize(raster_bytes, **kwargs)
        except StylizationError as err:
            logger.error(f"Stylization failed ({type(err).__name__}): {err}")
            return TransformationResult.failed(err.user_message)

        return TransformationResult.succeeded(self.image_service.to_data_url(output))


def stylize(raster_bytes: bytes, **kwargs) -> bytes:
    return StylizationPipeline().stylize(raster_bytes, **kwargs)


def transform_image(raster_bytes: bytes, **kwargs) -> TransformationResult:
    return StylizationPipeline().transform(raster_bytes, **kwargs)
