"""Contracts between the compositing pipeline and the codec layer."""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import AsyncIterator, Optional, Protocol, runtime_checkable

from ..frame import Frame


@dataclass(frozen=True, slots=True)
class SourceInfo:
    """Geometry and timing of the decoded video track."""

    width: int
    height: int
    fps: Fraction
    codec: str = ""
    has_audio: bool = False
    frame_count: Optional[int] = None  # container estimate, may be missing


@runtime_checkable
class FrameSource(Protocol):
    """Yields decoded frames in presentation order."""

    @property
    def info(self) -> SourceInfo: ...

    def open(self) -> SourceInfo: ...

    def __aiter__(self) -> AsyncIterator[Frame]: ...

    def close(self) -> None: ...


@runtime_checkable
class FrameSink(Protocol):
    """Accepts composited frames and produces the output container."""

    @property
    def frame_count(self) -> int: ...

    def open(self, info: SourceInfo) -> None: ...

    async def submit(self, frame: Frame) -> None: ...

    async def finalize(self) -> bytes: ...

    def abort(self) -> None: ...


__all__ = ["FrameSink", "FrameSource", "SourceInfo"]
