from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict

# Informational only: tells the consumer who produced the image.
METHODS = ("client-side", "huggingface", "openai", "ai")
LOCAL_METHOD = "client-side"

SUCCESS_MESSAGE = "Image successfully transformed to a painterly style"


@dataclass(frozen=True)
class TransformationResult:
    """
    Final record handed to the consumer of a transformation.
    Created once at the end of a run; immutable thereafter.
    """
    transformed_image: str | None  # data URL, None on failure
    success: bool
    message: str | None = None
    method: str | None = None

    def __post_init__(self):
        if self.method is not None and self.method not in METHODS:
            raise ValueError(f"Unknown transformation method: {self.method}")
        if self.success and not self.transformed_image:
            raise ValueError("A successful result needs a transformed image")

    @classmethod
    def succeeded(cls, data_url: str) -> "TransformationResult":
        return cls(transformed_image=data_url, success=True, message=SUCCESS_MESSAGE, method=LOCAL_METHOD)

    @classmethod
    def failed(cls, message: str) -> "TransformationResult":
        return cls(transformed_image=None, success=False, message=message, method=LOCAL_METHOD)

    def to_dict(self) -> Dict[str, Any]:
        """Consumer wire shape: camelCase keys, optional fields omitted."""
        record: Dict[str, Any] = {"success": self.success}
        if self.transformed_image is not None:
            record["transformedImage"] = self.transformed_image
        if self.message is not None:
            record["message"] = self.message
        if self.method is not None:
            record["method"] = self.method
        return record
