"""Burn a corner-hopping watermark into every frame of a video."""

from __future__ import annotations

from importlib import metadata

from .compositor import FrameCompositor, composite
from .core.errors import (
    AssetLoadError,
    DecodeError,
    EncodeError,
    InvalidGeometry,
    ProcessingCancelled,
    VidmarkError,
)
from .frame import Frame, WatermarkAsset, load_watermark
from .pipeline import PipelineResult, WatermarkPipeline, watermark_video
from .schedule import Placement, place, placement_for

try:
    __version__ = metadata.version("vidmark")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev
    __version__ = "0.0.0"


__all__ = [
    "AssetLoadError",
    "DecodeError",
    "EncodeError",
    "Frame",
    "FrameCompositor",
    "InvalidGeometry",
    "PipelineResult",
    "Placement",
    "ProcessingCancelled",
    "VidmarkError",
    "WatermarkAsset",
    "WatermarkPipeline",
    "__version__",
    "composite",
    "load_watermark",
    "place",
    "placement_for",
    "watermark_video",
]
