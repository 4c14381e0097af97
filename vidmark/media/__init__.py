"""PyAV-backed decode and encode stages."""

from .base import FrameSink, FrameSource, SourceInfo
from .sink import AVBufferSink, EncodeSettings
from .source import AVFrameSource

__all__ = [
    "AVBufferSink",
    "AVFrameSource",
    "EncodeSettings",
    "FrameSink",
    "FrameSource",
    "SourceInfo",
]
