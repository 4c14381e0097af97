"""Watermarking pipeline: decode -> composite -> encode, one frame at a time."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np

from .compositor import FrameCompositor
from .core.errors import ProcessingCancelled
from .core.logging_utils import LoggerLike, ensure_structured_logger
from .defaults import DEFAULT_CONTAINER, DEFAULT_FALLBACK_FPS, OUTPUT_MIME_TYPES
from .frame import WatermarkAsset, load_watermark
from .media.base import FrameSink, FrameSource

WatermarkInput = Union[WatermarkAsset, bytes, bytearray, str, Path, np.ndarray]


@dataclass(frozen=True, slots=True)
class PipelineResult:
    data: bytes
    frame_count: int
    mime_type: str = OUTPUT_MIME_TYPES[DEFAULT_CONTAINER]

    @property
    def size(self) -> int:
        return len(self.data)


def resolve_watermark(watermark: WatermarkInput) -> WatermarkAsset:
    """Turn any accepted watermark input into a loaded asset."""
    if isinstance(watermark, WatermarkAsset):
        return watermark
    if isinstance(watermark, np.ndarray):
        return WatermarkAsset.from_array(watermark)
    return load_watermark(watermark)


class WatermarkPipeline:
    """Drives one source through the compositor into one sink.

    The watermark is loaded before the source is touched, so a bad asset
    fails the run before any decode work. Each frame is composited and fully
    submitted before the next one is requested. On any failure or
    cancellation the sink is aborted and nothing is returned.
    """

    def __init__(
        self,
        watermark: WatermarkInput,
        source_factory: Callable[[], FrameSource],
        sink_factory: Callable[[], FrameSink],
        *,
        mime_type: str = OUTPUT_MIME_TYPES[DEFAULT_CONTAINER],
        logger: LoggerLike = None,
    ) -> None:
        self._watermark_input = watermark
        self._source_factory = source_factory
        self._sink_factory = sink_factory
        self._mime_type = mime_type
        self._log = ensure_structured_logger(logger, fallback_name=__name__)

    async def run(self, cancel_event: Optional[asyncio.Event] = None) -> PipelineResult:
        started = time.perf_counter()
        asset = resolve_watermark(self._watermark_input)
        compositor = FrameCompositor(asset)

        source = self._source_factory()
        sink: Optional[FrameSink] = None
        try:
            info = await asyncio.to_thread(source.open)
            sink = self._sink_factory()
            await asyncio.to_thread(sink.open, info)

            async for frame in source:
                if cancel_event is not None and cancel_event.is_set():
                    raise ProcessingCancelled(
                        f"Cancelled after {compositor.frames_composited} frames"
                    )
                output = await asyncio.to_thread(compositor.composite, frame)
                await sink.submit(output)

            if cancel_event is not None and cancel_event.is_set():
                raise ProcessingCancelled(
                    f"Cancelled after {compositor.frames_composited} frames"
                )
            data = await sink.finalize()
        except BaseException as exc:
            if sink is not None:
                sink.abort()
            if isinstance(exc, (ProcessingCancelled, asyncio.CancelledError)):
                self._log.info("Run cancelled after %d frames", compositor.frames_composited)
            elif isinstance(exc, Exception):
                self._log.error(
                    "Run failed after %d frames: %s: %s",
                    compositor.frames_composited,
                    type(exc).__name__,
                    exc,
                )
            raise
        finally:
            source.close()

        elapsed = time.perf_counter() - started
        self._log.info(
            "Watermarked %d frames into %d bytes in %.2fs",
            sink.frame_count,
            len(data),
            elapsed,
        )
        return PipelineResult(data=data, frame_count=sink.frame_count, mime_type=self._mime_type)


async def watermark_video(
    video: bytes,
    watermark: WatermarkInput,
    *,
    settings=None,
    fallback_fps: float = DEFAULT_FALLBACK_FPS,
    cancel_event: Optional[asyncio.Event] = None,
    logger: LoggerLike = None,
) -> PipelineResult:
    """Watermark an in-memory video and return the encoded result.

    Args:
        video: Encoded input container bytes.
        watermark: Encoded image bytes, an image path, an RGB/RGBA array or
            a loaded :class:`WatermarkAsset`.
        settings: Optional :class:`~vidmark.media.sink.EncodeSettings`.
        fallback_fps: Frame rate assumed when the input declares none.
        cancel_event: When set, the run stops at the next frame boundary.
        logger: Optional logger for pipeline lifecycle messages.

    Raises:
        AssetLoadError, DecodeError, EncodeError, InvalidGeometry,
        ProcessingCancelled
    """
    from .media.sink import AVBufferSink, EncodeSettings
    from .media.source import AVFrameSource

    settings = settings or EncodeSettings()
    pipeline = WatermarkPipeline(
        watermark,
        lambda: AVFrameSource(video, fallback_fps=fallback_fps, logger=logger),
        lambda: AVBufferSink(settings, audio_from=video, logger=logger),
        mime_type=OUTPUT_MIME_TYPES.get(settings.container, "application/octet-stream"),
        logger=logger,
    )
    return await pipeline.run(cancel_event)


__all__ = ["PipelineResult", "WatermarkPipeline", "resolve_watermark", "watermark_video"]
