from __future__ import annotations

import os
from typing import Iterable

from dotenv import load_dotenv

from ..models.validation_result import ValidationResult

# Load environment variables
load_dotenv()


class UploadValidationService:
    """
    Gate in front of the pipeline: only small JPEG / PNG uploads get through.
    """

    def __init__(self,
                 allowed_types: Iterable[str] | None = None,
                 max_size_mb: float | None = None):
        if allowed_types is None:
            allowed_types = os.getenv("ALLOWED_MIME_TYPES", "image/jpeg,image/png").split(",")
        self.allowed_types = {t.strip().lower() for t in allowed_types if t.strip()}
        if max_size_mb is None:
            max_size_mb = float(os.getenv("MAX_UPLOAD_SIZE_MB", "2"))
        self.max_size_mb = max_size_mb
        self.max_bytes = int(max_size_mb * 1024 * 1024)

    def validate(self, content_type: str | None, size: int) -> ValidationResult:
        """
        Args:
            content_type: declared MIME type of the upload.
            size: upload size in bytes.

        Returns:
            ValidationResult with a human-readable message when rejected.
        """
        if (content_type or "").lower() not in self.allowed_types:
            return ValidationResult(False, "Invalid file type. Only JPG and PNG images are supported.")

        if size > self.max_bytes:
            return ValidationResult(False, f"File size exceeds the {self.max_size_mb:g}MB limit.")

        return ValidationResult(True)


def validate_upload(content_type: str | None, size: int) -> ValidationResult:
    return UploadValidationService().validate(content_type, size)
