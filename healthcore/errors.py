"""
Custom exceptions for the derivation engine.

Data-entry problems are raised to the caller immediately. Problems met while
deriving display values (classification, insights) are logged and degraded to
a neutral result instead, so these classes are also used as internal signals.
"""

from __future__ import annotations

from typing import Any


class HealthCoreError(Exception):
    """Base class for all engine errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(HealthCoreError):
    """Raised when a reading or session violates a clinical rule."""

    def __init__(self, message: str, fields: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "code": "VALIDATION_ERROR",
                "message": self.message,
                "fields": self.fields,
            }
        }


class ConfigError(HealthCoreError):
    """Raised when a change policy is missing a value it needs."""


class CorruptStateError(HealthCoreError):
    """Raised when persisted state does not have the expected shape."""

    def __init__(self, message: str, raw: Any = None) -> None:
        super().__init__(message)
        self.raw = raw
