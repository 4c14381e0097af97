"""Per-frame watermark compositing."""

from __future__ import annotations

from typing import Dict, Tuple

import cv2
import numpy as np

from .core.errors import InvalidGeometry
from .core.logging_utils import get_module_logger
from .frame import Frame, WatermarkAsset
from .schedule import Placement, placement_for

logger = get_module_logger(__name__)


def raster_rect(placement: Placement) -> Tuple[int, int, int, int]:
    """Snap a placement to whole pixels: ``(x, y, width, height)``."""
    width = max(1, int(round(placement.width)))
    height = max(1, int(round(placement.height)))
    return int(round(placement.x)), int(round(placement.y)), width, height


def scale_watermark(asset: WatermarkAsset, width: int, height: int) -> np.ndarray:
    """Resample the asset to ``width`` x ``height``; float32 channels.

    RGBA assets come back with colour premultiplied by alpha, so fully
    transparent texels add nothing to the edges they are averaged into.
    """
    pixels = asset.pixels.astype(np.float32)
    if asset.has_alpha:
        pixels[..., :3] *= pixels[..., 3:4] / 255.0
    if (width, height) != (asset.width, asset.height):
        shrinking = width < asset.width and height < asset.height
        interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
        pixels = cv2.resize(pixels, (width, height), interpolation=interpolation)
    return pixels


def blend_into(canvas: np.ndarray, overlay: np.ndarray, x: int, y: int, has_alpha: bool) -> None:
    """Draw ``overlay`` onto ``canvas`` at ``(x, y)`` in place.

    Overlay pixels outside the canvas are dropped. With ``has_alpha`` the
    overlay is premultiplied RGBA (as returned by :func:`scale_watermark`)
    and is blended source-over, otherwise it replaces the covered pixels.
    """
    canvas_h, canvas_w = canvas.shape[:2]
    overlay_h, overlay_w = overlay.shape[:2]

    x0 = max(0, x)
    y0 = max(0, y)
    x1 = min(canvas_w, x + overlay_w)
    y1 = min(canvas_h, y + overlay_h)
    if x0 >= x1 or y0 >= y1:
        return

    ox0 = x0 - x
    oy0 = y0 - y
    region = overlay[oy0:oy0 + (y1 - y0), ox0:ox0 + (x1 - x0)]

    if not has_alpha:
        canvas[y0:y1, x0:x1] = np.clip(region[..., :3] + 0.5, 0, 255).astype(np.uint8)
        return

    alpha = region[..., 3:4] / 255.0
    under = canvas[y0:y1, x0:x1].astype(np.float32)
    out = region[..., :3] + under * (1.0 - alpha)
    canvas[y0:y1, x0:x1] = np.clip(out + 0.5, 0, 255).astype(np.uint8)


def _normalized_timestamp(timestamp: float) -> float:
    if timestamp < 0:
        logger.debug("Negative timestamp %.6f treated as 0", timestamp)
        return 0.0
    return timestamp


def _check_geometry(frame: Frame) -> None:
    if frame.data.ndim != 3 or frame.width <= 0 or frame.height <= 0:
        raise InvalidGeometry(f"Frame has invalid size {frame.width}x{frame.height}")


def placement_of(frame: Frame, watermark: WatermarkAsset) -> Placement:
    _check_geometry(frame)
    return placement_for(
        _normalized_timestamp(frame.timestamp),
        frame.width,
        frame.height,
        watermark.width,
        watermark.height,
    )


def composite(frame: Frame, watermark: WatermarkAsset) -> Frame:
    """Return a copy of ``frame`` with the watermark drawn at its scheduled spot."""
    placement = placement_of(frame, watermark)
    x, y, width, height = raster_rect(placement)
    canvas = np.array(frame.data, dtype=np.uint8, copy=True)
    blend_into(canvas, scale_watermark(watermark, width, height), x, y, watermark.has_alpha)
    return frame.with_pixels(canvas)


class FrameCompositor:
    """Composites one watermark asset onto a stream of frames.

    Scaled copies of the asset are memoised per raster size; the asset is
    immutable, so results are identical to :func:`composite`.
    """

    def __init__(self, watermark: WatermarkAsset) -> None:
        self._watermark = watermark
        self._scaled: Dict[Tuple[int, int], np.ndarray] = {}
        self._frames = 0

    @property
    def watermark(self) -> WatermarkAsset:
        return self._watermark

    @property
    def frames_composited(self) -> int:
        return self._frames

    def placement(self, frame: Frame) -> Placement:
        return placement_of(frame, self._watermark)

    def composite(self, frame: Frame) -> Frame:
        placement = self.placement(frame)
        x, y, width, height = raster_rect(placement)

        overlay = self._scaled.get((width, height))
        if overlay is None:
            overlay = scale_watermark(self._watermark, width, height)
            overlay.setflags(write=False)
            self._scaled[(width, height)] = overlay
            logger.debug(
                "Scaled watermark to %dx%d for %dx%d frames",
                width,
                height,
                frame.width,
                frame.height,
            )

        canvas = np.array(frame.data, dtype=np.uint8, copy=True)
        blend_into(canvas, overlay, x, y, self._watermark.has_alpha)
        self._frames += 1
        return frame.with_pixels(canvas)


__all__ = [
    "FrameCompositor",
    "blend_into",
    "composite",
    "placement_of",
    "raster_rect",
    "scale_watermark",
]
