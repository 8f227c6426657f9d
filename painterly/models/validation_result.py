from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    message: str | None = None  # human-readable reason when invalid
