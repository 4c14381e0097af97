"""Time-driven watermark placement.

The watermark hops between five corner-anchored spots on a 15 second cycle,
three seconds per spot. The mapping is a table of half-open intervals over
``t mod 15`` so the boundaries can be read (and tested) directly:

    [0, 3)   A  right, vertically centred
    [3, 6)   B  left, one and a half heights above the bottom
    [6, 9)   C  right, upper
    [9, 12)  D  right, lower
    [12, 15) E  left, upper

Coordinates are never clamped to the canvas; anything off-frame is dropped
later, when pixels are blended.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Tuple

from .core.errors import InvalidGeometry

CYCLE_SECONDS = 15.0
SLOT_SECONDS = 3.0
SCALE_DIVISOR = 4


class Corner(Enum):
    RIGHT_CENTER = "right-center"
    LEFT_OFFSET = "left-offset"
    RIGHT_UPPER = "right-upper"
    RIGHT_LOWER = "right-lower"
    LEFT_UPPER = "left-upper"

    def origin(self, W: float, H: float, w: float, h: float) -> Tuple[float, float]:
        """Top-left corner of a ``w`` x ``h`` watermark on a ``W`` x ``H`` canvas."""
        return _ORIGINS[self](W, H, w, h)


_ORIGINS: Dict[Corner, Callable[[float, float, float, float], Tuple[float, float]]] = {
    Corner.RIGHT_CENTER: lambda W, H, w, h: (W - 5 * w / 4, (H - h) / 2),
    Corner.LEFT_OFFSET: lambda W, H, w, h: (w / 4, H - 3 * h / 2),
    Corner.RIGHT_UPPER: lambda W, H, w, h: (W - 5 * w / 4, h / 2),
    Corner.RIGHT_LOWER: lambda W, H, w, h: (W - 5 * w / 4, H - 3 * h / 2),
    Corner.LEFT_UPPER: lambda W, H, w, h: (w / 4, h / 2),
}


@dataclass(frozen=True, slots=True)
class Slot:
    label: str
    start: float
    end: float
    corner: Corner

    def contains(self, cycle: float) -> bool:
        return self.start <= cycle < self.end


SCHEDULE: Tuple[Slot, ...] = (
    Slot("A", 0.0, 3.0, Corner.RIGHT_CENTER),
    Slot("B", 3.0, 6.0, Corner.LEFT_OFFSET),
    Slot("C", 6.0, 9.0, Corner.RIGHT_UPPER),
    Slot("D", 9.0, 12.0, Corner.RIGHT_LOWER),
    Slot("E", 12.0, CYCLE_SECONDS, Corner.LEFT_UPPER),
)


@dataclass(frozen=True, slots=True)
class Placement:
    x: float
    y: float
    width: float
    height: float


def cycle_position(t: float) -> float:
    return t % CYCLE_SECONDS


def bucket_for(t: float) -> Slot:
    """Return the schedule slot active at timestamp ``t``."""
    cycle = cycle_position(t)
    for slot in SCHEDULE:
        if slot.contains(cycle):
            return slot
    # float modulo can round up to exactly CYCLE_SECONDS for tiny negative t
    return SCHEDULE[-1]


def place(t: float, W: float, H: float, w: float, h: float) -> Tuple[float, float]:
    """Origin ``(x, y)`` of a ``w`` x ``h`` watermark on a ``W`` x ``H`` canvas at time ``t``."""
    return bucket_for(t).corner.origin(W, H, w, h)


def watermark_size(canvas_width: float, asset_width: float, asset_height: float) -> Tuple[float, float]:
    """Scaled watermark size: a quarter of the canvas width, aspect ratio kept."""
    if asset_width <= 0 or asset_height <= 0:
        raise InvalidGeometry(f"Watermark has invalid size {asset_width}x{asset_height}")
    width = canvas_width / SCALE_DIVISOR
    height = asset_height / asset_width * width
    return width, height


def placement_for(
    t: float,
    canvas_width: float,
    canvas_height: float,
    asset_width: float,
    asset_height: float,
) -> Placement:
    """Full draw rectangle for a frame, applying the fixed scale policy."""
    if canvas_width <= 0 or canvas_height <= 0:
        raise InvalidGeometry(f"Frame has invalid size {canvas_width}x{canvas_height}")
    width, height = watermark_size(canvas_width, asset_width, asset_height)
    x, y = place(t, canvas_width, canvas_height, width, height)
    return Placement(x=x, y=y, width=width, height=height)


__all__ = [
    "CYCLE_SECONDS",
    "Corner",
    "Placement",
    "SCALE_DIVISOR",
    "SCHEDULE",
    "SLOT_SECONDS",
    "Slot",
    "bucket_for",
    "cycle_position",
    "place",
    "placement_for",
    "watermark_size",
]
