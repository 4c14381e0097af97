"""In-memory encoding and muxing with PyAV."""

from __future__ import annotations

import asyncio
import io
import threading
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Optional

import av
import numpy as np

from ..core.errors import EncodeError
from ..core.logging_utils import LoggerLike, ensure_structured_logger
from ..defaults import (
    DEFAULT_CONTAINER,
    DEFAULT_CODEC,
    DEFAULT_CRF,
    DEFAULT_PIXEL_FORMAT,
    DEFAULT_PRESET,
)
from ..frame import Frame
from .base import SourceInfo

_X264_FAMILY = {"libx264", "libx265", "h264", "hevc"}


@dataclass(slots=True)
class EncodeSettings:
    codec: str = DEFAULT_CODEC
    pixel_format: str = DEFAULT_PIXEL_FORMAT
    crf: int = DEFAULT_CRF
    preset: str = DEFAULT_PRESET
    container: str = DEFAULT_CONTAINER


def _even(value: int) -> int:
    return max(2, value - value % 2)


def _fit_pixels(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    """Drop the odd trailing row/column so the picture is not rescaled."""
    rows, cols = pixels.shape[:2]
    if rows - height in (0, 1) and cols - width in (0, 1):
        return np.ascontiguousarray(pixels[:height, :width])
    return pixels


class AVBufferSink:
    """Encodes composited frames into a container held in a ``BytesIO``.

    When ``audio_from`` holds the original input bytes, its first audio
    stream is copied packet for packet into the output without re-encoding.
    The buffer is only handed out by :meth:`finalize`; :meth:`abort` drops it.

    Every codec step holds ``_lock``. A cancelled ``submit`` leaves its worker
    thread running, so :meth:`abort` waits for that step before closing the
    container.
    """

    def __init__(
        self,
        settings: Optional[EncodeSettings] = None,
        *,
        audio_from: Optional[bytes] = None,
        logger: LoggerLike = None,
    ) -> None:
        self._settings = settings or EncodeSettings()
        self._audio_from = audio_from
        self._log = ensure_structured_logger(logger, fallback_name=__name__)
        self._lock = threading.RLock()

        self._buffer: Optional[io.BytesIO] = None
        self._container: Any = None
        self._video: Any = None
        self._audio_input: Any = None
        self._audio_in_stream: Any = None
        self._audio_out_stream: Any = None
        self._time_base = Fraction(1, 30)
        self._size = (0, 0)

        self._frame_count = 0
        self._last_pts: Optional[int] = None
        self._audio_packets = 0

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def audio_packets(self) -> int:
        return self._audio_packets

    @property
    def is_open(self) -> bool:
        return self._container is not None

    def open(self, info: SourceInfo) -> None:
        """Create the output container and its streams.

        Raises:
            EncodeError: the codec or container cannot be set up.
        """
        settings = self._settings
        rate = Fraction(info.fps).limit_denominator(1001)
        with self._lock:
            self._time_base = 1 / rate
            self._size = (_even(info.width), _even(info.height))

            self._buffer = io.BytesIO()
            try:
                self._container = av.open(self._buffer, mode="w", format=settings.container)
                video = self._container.add_stream(settings.codec, rate=rate)
                video.width, video.height = self._size
                video.pix_fmt = settings.pixel_format
                video.codec_context.time_base = self._time_base
                if settings.codec in _X264_FAMILY:
                    video.options = {"crf": str(settings.crf), "preset": settings.preset}
                self._video = video
            except (av.error.FFmpegError, ValueError, TypeError) as exc:
                self.abort()
                raise EncodeError(
                    f"Failed to set up {settings.codec} in {settings.container}: {exc}"
                ) from exc

            if self._audio_from is not None and info.has_audio:
                self._open_audio_passthrough()

        self._log.info(
            "Output opened: %s/%s %dx%d @ %s fps",
            settings.container,
            settings.codec,
            self._size[0],
            self._size[1],
            rate,
        )

    def _open_audio_passthrough(self) -> None:
        try:
            self._audio_input = av.open(io.BytesIO(self._audio_from), mode="r")
            self._audio_in_stream = self._audio_input.streams.audio[0]
            self._audio_out_stream = self._container.add_stream_from_template(self._audio_in_stream)
        except (av.error.FFmpegError, ValueError, IndexError) as exc:
            # Container may not accept the source audio codec; video still goes out.
            self._log.warning("Audio pass-through disabled: %s", exc)
            self._close_audio_input()
            self._audio_out_stream = None

    async def submit(self, frame: Frame) -> None:
        """Encode one frame; returns once its packets are muxed."""
        if self._container is None:
            raise EncodeError("Sink is not open")
        await asyncio.to_thread(self._encode, frame)

    def _encode(self, frame: Frame) -> None:
        width, height = self._size
        with self._lock:
            if self._container is None:
                raise EncodeError("Sink was closed before the frame was encoded")
            pts = int(round(max(frame.timestamp, 0.0) / self._time_base))
            if self._last_pts is not None and pts <= self._last_pts:
                pts = self._last_pts + 1
            try:
                pixels = _fit_pixels(frame.data, width, height)
                av_frame = av.VideoFrame.from_ndarray(pixels, format="rgb24")
                av_frame = av_frame.reformat(
                    width=width,
                    height=height,
                    format=self._settings.pixel_format,
                )
                av_frame.pts = pts
                av_frame.time_base = self._time_base
                for packet in self._video.encode(av_frame):
                    self._container.mux(packet)
            except (av.error.FFmpegError, ValueError, TypeError) as exc:
                raise EncodeError(
                    f"Failed to encode frame at {frame.timestamp:.3f}s: {exc}"
                ) from exc
            self._last_pts = pts
            self._frame_count += 1

    async def finalize(self) -> bytes:
        """Flush the encoder, copy audio, close the container and return its bytes."""
        if self._container is None or self._buffer is None:
            raise EncodeError("Sink is not open")
        try:
            await asyncio.to_thread(self._finish)
        except BaseException:
            self.abort()
            raise
        data = self._buffer.getvalue()
        self._buffer = None
        self._log.info(
            "Output finalized: %d frames, %d audio packets, %d bytes",
            self._frame_count,
            self._audio_packets,
            len(data),
        )
        return data

    def _finish(self) -> None:
        with self._lock:
            if self._container is None:
                raise EncodeError("Sink was closed before it was finalized")
            try:
                for packet in self._video.encode(None):
                    self._container.mux(packet)
                if self._audio_out_stream is not None:
                    self._copy_audio()
                self._container.close()
            except (av.error.FFmpegError, ValueError) as exc:
                raise EncodeError(f"Failed to finalize output: {exc}") from exc
            finally:
                self._close_audio_input()
            self._container = None
            self._video = None

    def _copy_audio(self) -> None:
        for packet in self._audio_input.demux(self._audio_in_stream):
            if packet.dts is None:
                continue
            packet.stream = self._audio_out_stream
            self._container.mux(packet)
            self._audio_packets += 1

    def _close_audio_input(self) -> None:
        if self._audio_input is not None:
            try:
                self._audio_input.close()
            except av.error.FFmpegError:
                self._log.debug("Ignoring error while closing audio input", exc_info=True)
            self._audio_input = None
            self._audio_in_stream = None

    def abort(self) -> None:
        """Discard everything written so far.

        Blocks until an in-flight encode step has finished with the container.
        """
        with self._lock:
            if self._container is not None:
                try:
                    self._container.close()
                except (av.error.FFmpegError, ValueError):
                    self._log.debug("Ignoring error while closing aborted output", exc_info=True)
                self._container = None
                self._video = None
            self._close_audio_input()
            if self._buffer is not None:
                self._buffer.close()
                self._buffer = None
                self._log.info("Output discarded after %d frames", self._frame_count)


__all__ = ["AVBufferSink", "EncodeSettings"]
