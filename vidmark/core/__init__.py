"""Shared infrastructure: logging and error types."""

from .errors import (
    AssetLoadError,
    DecodeError,
    EncodeError,
    InvalidGeometry,
    ProcessingCancelled,
    VidmarkError,
)
from .logging_utils import StructuredLogger, ensure_structured_logger, get_module_logger

__all__ = [
    "AssetLoadError",
    "DecodeError",
    "EncodeError",
    "InvalidGeometry",
    "ProcessingCancelled",
    "StructuredLogger",
    "VidmarkError",
    "ensure_structured_logger",
    "get_module_logger",
]
