"""In-memory video decoding with PyAV."""

from __future__ import annotations

import asyncio
import io
import threading
from fractions import Fraction
from typing import Any, AsyncIterator, Iterator, Optional

import av

from ..core.errors import DecodeError
from ..core.logging_utils import LoggerLike, ensure_structured_logger
from ..defaults import DEFAULT_FALLBACK_FPS
from ..frame import Frame, frame_from_array
from .base import SourceInfo

_END = object()


class AVFrameSource:
    """Decodes the first video stream of an in-memory container.

    Frames come out as RGB24 arrays in decode order, which for a video track
    is presentation order. Each decode step runs in a worker thread so the
    event loop stays responsive; only one step is ever in flight, and
    :meth:`close` waits for it before releasing the container.
    """

    def __init__(
        self,
        data: bytes,
        *,
        fallback_fps: float = DEFAULT_FALLBACK_FPS,
        logger: LoggerLike = None,
    ) -> None:
        self._data = data
        self._fallback_fps = Fraction(fallback_fps).limit_denominator(1001)
        self._log = ensure_structured_logger(logger, fallback_name=__name__)
        self._lock = threading.RLock()
        self._container: Any = None
        self._stream: Any = None
        self._info: Optional[SourceInfo] = None
        self._frames_decoded = 0

    @property
    def info(self) -> SourceInfo:
        if self._info is None:
            raise RuntimeError("AVFrameSource.open() has not been called")
        return self._info

    @property
    def frames_decoded(self) -> int:
        return self._frames_decoded

    def open(self) -> SourceInfo:
        """Open the container and describe its video track.

        Raises:
            DecodeError: the bytes are not a readable container or hold no video.
        """
        with self._lock:
            if self._info is not None:
                return self._info
            try:
                self._container = av.open(io.BytesIO(self._data), mode="r")
            except (av.error.FFmpegError, ValueError) as exc:
                raise DecodeError(f"Failed to open input container: {exc}") from exc

            if not self._container.streams.video:
                self.close()
                raise DecodeError("Input has no video stream")

            stream = self._container.streams.video[0]
            stream.thread_type = "AUTO"
            self._stream = stream

            ctx = stream.codec_context
            rate = stream.average_rate or stream.guessed_rate or self._fallback_fps
            self._info = SourceInfo(
                width=int(ctx.width),
                height=int(ctx.height),
                fps=Fraction(rate),
                codec=ctx.name or "",
                has_audio=bool(self._container.streams.audio),
                frame_count=int(stream.frames) or None,
            )
        self._log.info(
            "Input opened: %s %dx%d @ %s fps (audio=%s)",
            self._info.codec,
            self._info.width,
            self._info.height,
            self._info.fps,
            self._info.has_audio,
        )
        return self._info

    async def __aiter__(self) -> AsyncIterator[Frame]:
        self.open()
        decoder = self._container.decode(self._stream)
        while True:
            frame = await asyncio.to_thread(self._next_frame, decoder)
            if frame is _END:
                break
            yield frame

    def _next_frame(self, decoder: Iterator[Any]) -> Any:
        with self._lock:
            if self._container is None:
                return _END
            try:
                av_frame = next(decoder, _END)
                if av_frame is _END:
                    return _END
                pixels = av_frame.to_ndarray(format="rgb24")
            except (av.error.FFmpegError, ValueError) as exc:
                raise DecodeError(
                    f"Failed to decode frame {self._frames_decoded + 1}: {exc}"
                ) from exc

            if av_frame.time is not None:
                timestamp = float(av_frame.time)
            else:
                timestamp = self._frames_decoded / float(self.info.fps)
            self._frames_decoded += 1
        return frame_from_array(pixels, timestamp)

    def close(self) -> None:
        """Release the container, waiting for an in-flight decode step."""
        with self._lock:
            if self._container is not None:
                try:
                    self._container.close()
                except av.error.FFmpegError:
                    self._log.debug("Ignoring error while closing input container", exc_info=True)
                self._container = None
                self._stream = None


__all__ = ["AVFrameSource"]
