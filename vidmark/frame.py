"""Frame and watermark data structures."""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .core.errors import AssetLoadError, InvalidGeometry
from .core.logging_utils import get_module_logger

logger = get_module_logger(__name__)

# Modes that carry transparency once converted; "P" only counts when the
# palette declares a transparent index.
_ALPHA_MODES = {"RGBA", "LA", "PA", "RGBa", "La"}


@dataclass(frozen=True, slots=True)
class Frame:
    """Immutable decoded video frame."""

    data: np.ndarray  # RGB24 pixels, shape (height, width, 3)
    timestamp: float  # presentation time in seconds

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def with_pixels(self, data: np.ndarray) -> "Frame":
        """New frame carrying ``data`` and this frame's timestamp."""
        return Frame(data=data, timestamp=self.timestamp)


@dataclass(frozen=True, slots=True)
class WatermarkAsset:
    """Read-only watermark pixels shared by every frame of a run."""

    pixels: np.ndarray  # RGBA when has_alpha, else RGB; shape (height, width, C)
    has_alpha: bool

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def aspect(self) -> float:
        """Height over width."""
        return self.height / self.width

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "WatermarkAsset":
        """Wrap an ``HxWx3`` (RGB) or ``HxWx4`` (RGBA) uint8 array."""
        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise AssetLoadError(f"Watermark array must be HxWx3 or HxWx4, got shape {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise AssetLoadError("Watermark image is empty")
        data = np.array(pixels, dtype=np.uint8, copy=True)
        data.setflags(write=False)
        return cls(pixels=data, has_alpha=data.shape[2] == 4)


def frame_from_array(data: np.ndarray, timestamp: float) -> Frame:
    """Build a Frame, rejecting buffers that cannot be composited."""
    if data.ndim != 3 or data.shape[2] != 3:
        raise InvalidGeometry(f"Frame must be HxWx3, got shape {data.shape}")
    if data.shape[0] <= 0 or data.shape[1] <= 0:
        raise InvalidGeometry(f"Frame has invalid size {data.shape[1]}x{data.shape[0]}")
    return Frame(data=data, timestamp=float(timestamp))


def _has_transparency(image: Image.Image) -> bool:
    if image.mode in _ALPHA_MODES:
        return True
    return image.mode == "P" and "transparency" in image.info


def load_watermark(source: Union[bytes, bytearray, str, Path]) -> WatermarkAsset:
    """Decode a watermark image from encoded bytes or a file path.

    Raises:
        AssetLoadError: the image could not be read or decoded, or is empty.
    """
    if isinstance(source, (bytes, bytearray)):
        handle: Union[io.BytesIO, Path] = io.BytesIO(bytes(source))
        label = f"<{len(source)} bytes>"
    else:
        handle = Path(source)
        label = str(source)

    try:
        with Image.open(handle) as image:
            image.load()
            mode = "RGBA" if _has_transparency(image) else "RGB"
            pixels = np.asarray(image.convert(mode))
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise AssetLoadError(f"Failed to load watermark {label}: {exc}") from exc

    asset = WatermarkAsset.from_array(pixels)
    logger.info(
        "Watermark loaded: %s (%dx%d, alpha=%s)",
        label,
        asset.width,
        asset.height,
        asset.has_alpha,
    )
    return asset


__all__ = ["Frame", "WatermarkAsset", "frame_from_array", "load_watermark"]
