"""Unified exception hierarchy for SAM.

The graph engine itself never raises for data problems: dangling facts are
dropped and empty inputs give empty graphs. These exceptions belong to the
layers around it (configuration, payload parsing, export, CLI).

Exception Hierarchy:
    SamError (base)
    +-- ConfigurationError - Configuration and settings issues
    +-- ValidationError - Malformed input payloads
    +-- GraphError - Unexpected build/layout pipeline failures
    +-- ExportError - Export generation failures

Usage:
    from sam.errors import SamError, ValidationError

    try:
        inputs = parse_payload(data)
    except ValidationError as e:
        logger.error("Bad payload: %s (code: %s)", e.message, e.code)
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standard error codes for SAM errors.

    Codes are grouped by prefix.
    """

    # Configuration errors (CFG_*)
    CFG_INVALID = "CFG_INVALID"
    CFG_MISSING = "CFG_MISSING"

    # Validation errors (VAL_*)
    VAL_INVALID_INPUT = "VAL_INVALID_INPUT"
    VAL_MISSING_REQUIRED = "VAL_MISSING_REQUIRED"

    # Graph errors (GRF_*)
    GRF_BUILD_FAILED = "GRF_BUILD_FAILED"
    GRF_LAYOUT_FAILED = "GRF_LAYOUT_FAILED"

    # Export errors (EXPORT_*)
    EXPORT_INVALID_FORMAT = "EXPORT_INVALID_FORMAT"
    EXPORT_WRITE_FAILED = "EXPORT_WRITE_FAILED"

    # Generic errors
    UNKNOWN = "UNKNOWN"


class SamError(Exception):
    """Base exception for all SAM errors.

    Keyword arguments other than ``code`` and ``cause`` are collected into
    ``details`` (``None`` values are dropped), which the CLI shows as hints.
    """

    default_message: str = "An error occurred"
    default_code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str | None = None,
        *,
        code: ErrorCode | None = None,
        cause: Exception | None = None,
        **details: Any,
    ) -> None:
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = {key: value for key, value in details.items() if value is not None}
        self.cause = cause
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause


class ConfigurationError(SamError):
    """Raised for configuration and settings issues (``config_path`` detail)."""

    default_message = "Configuration error"
    default_code = ErrorCode.CFG_INVALID


class ValidationError(SamError):
    """Raised when an input payload cannot be parsed into graph inputs."""

    default_message = "Invalid input"
    default_code = ErrorCode.VAL_INVALID_INPUT

    def __init__(self, message: str | None = None, *, value: Any = None, **kwargs: Any) -> None:
        # Offending input is kept as a short repr so details stay printable
        if value is not None:
            kwargs["value"] = repr(value)[:200]
        super().__init__(message, **kwargs)


class GraphError(SamError):
    """Raised when the build/layout pipeline fails unexpectedly."""

    default_message = "Graph operation failed"
    default_code = ErrorCode.GRF_BUILD_FAILED


class ExportError(SamError):
    """Raised when a graph cannot be exported (``format``/``path`` details)."""

    default_message = "Export failed"
    default_code = ErrorCode.EXPORT_WRITE_FAILED


__all__ = [
    "ConfigurationError",
    "ErrorCode",
    "ExportError",
    "GraphError",
    "SamError",
    "ValidationError",
]
