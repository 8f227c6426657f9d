from enum import Enum


class PipelineState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    DETECTING_FACES = "detecting_faces"
    RECOLORING = "recoloring"
    COMPOSITING_TEXTURE = "compositing_texture"
    SYNTHESIZING_EDGES = "synthesizing_edges"
    ENCODING = "encoding"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.DONE, PipelineState.ERROR)
