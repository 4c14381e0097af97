"""Fatal error kinds raised by the watermarking pipeline.

Every error is terminal for a run: nothing retries, nothing skips a frame,
and no partial output is returned alongside one of these.
"""

from __future__ import annotations


class VidmarkError(RuntimeError):
    """Base class; ``stage`` names the step that failed."""

    stage = "pipeline"
    status_message = "Error processing video."


class AssetLoadError(VidmarkError):
    stage = "asset"
    status_message = "Watermark could not be loaded."


class DecodeError(VidmarkError):
    stage = "decode"
    status_message = "Video could not be decoded."


class EncodeError(VidmarkError):
    stage = "encode"
    status_message = "Video could not be encoded."


class InvalidGeometry(VidmarkError, ValueError):
    stage = "geometry"
    status_message = "Video has invalid dimensions."


class ProcessingCancelled(VidmarkError):
    stage = "cancelled"
    status_message = "Processing cancelled."


__all__ = [
    "AssetLoadError",
    "DecodeError",
    "EncodeError",
    "InvalidGeometry",
    "ProcessingCancelled",
    "VidmarkError",
]
