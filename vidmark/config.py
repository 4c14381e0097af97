"""Typed configuration for the codec layer and logging.

Only encoding and logging are configurable. The placement schedule, the
quarter-width scale and the corner margins are fixed in
:mod:`vidmark.schedule`.

Config files are plain ``key = value`` lines with ``#`` comments, keys in
dotted form (``encode.crf = 20``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .core.logging_utils import LoggerLike, ensure_structured_logger
from .defaults import (
    DEFAULT_CODEC,
    DEFAULT_CONTAINER,
    DEFAULT_CRF,
    DEFAULT_FALLBACK_FPS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PIXEL_FORMAT,
    DEFAULT_PRESET,
)
from .media.sink import EncodeSettings


@dataclass(slots=True)
class LoggingSettings:
    level: str = DEFAULT_LOG_LEVEL
    file: Optional[Path] = None


@dataclass(slots=True)
class VidmarkConfig:
    encode: EncodeSettings = field(default_factory=EncodeSettings)
    fallback_fps: float = DEFAULT_FALLBACK_FPS
    logging: LoggingSettings = field(default_factory=LoggingSettings)


# ---------------------------------------------------------------------------
# Public API


def read_config_file(path: Path, *, logger: LoggerLike = None) -> Dict[str, str]:
    """Parse a ``key = value`` file; a missing file yields an empty dict."""
    log = ensure_structured_logger(logger, fallback_name=__name__)
    values: Dict[str, str] = {}
    if not path.exists():
        log.debug("Config file not found at %s, using defaults", path)
        return values

    log.debug("Loading config from: %s", path)
    with open(path, "r", encoding="utf-8") as handle:
        for line_num, raw_line in enumerate(handle, 1):
            line = raw_line.split("#", 1)[0].strip()
            if not line:
                continue
            if "=" not in line:
                log.warning("Invalid config line %d (missing '='): %s", line_num, raw_line.rstrip())
                continue
            key, value = line.split("=", 1)
            values[key.strip()] = value.strip()
    return values


def load_config(
    path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
    *,
    logger: LoggerLike = None,
) -> VidmarkConfig:
    """Build a typed config from an optional file plus optional overrides."""
    log = ensure_structured_logger(logger, fallback_name=__name__)
    merged: Dict[str, Any] = {}
    if path is not None:
        merged.update(read_config_file(Path(path), logger=log))
    if overrides:
        for key, value in overrides.items():
            if value is not None:
                merged[key] = value

    encode = EncodeSettings(
        codec=_coerce_str(merged, ("encode.codec", "codec"), DEFAULT_CODEC),
        pixel_format=_coerce_str(merged, ("encode.pixel_format", "pix_fmt"), DEFAULT_PIXEL_FORMAT),
        crf=_coerce_int(merged, ("encode.crf", "crf"), DEFAULT_CRF, logger=log),
        preset=_coerce_str(merged, ("encode.preset", "preset"), DEFAULT_PRESET),
        container=_coerce_str(merged, ("encode.container", "container"), DEFAULT_CONTAINER),
    )
    fallback_fps = _coerce_float(
        merged, ("encode.fallback_fps", "fallback_fps"), DEFAULT_FALLBACK_FPS, logger=log
    )
    if fallback_fps <= 0:
        log.warning("Ignoring non-positive fallback fps %s", fallback_fps)
        fallback_fps = DEFAULT_FALLBACK_FPS

    logging_settings = LoggingSettings(
        level=_coerce_str(merged, ("logging.level", "log_level"), DEFAULT_LOG_LEVEL).upper(),
        file=_coerce_optional_path(merged, ("logging.file", "log_file")),
    )

    return VidmarkConfig(encode=encode, fallback_fps=fallback_fps, logging=logging_settings)


# ---------------------------------------------------------------------------
# Internal helpers


def _first_present(data: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _coerce_str(data: Dict[str, Any], keys: Tuple[str, ...], default: str) -> str:
    raw = _first_present(data, keys)
    if raw is None:
        return default
    return str(raw).strip() or default


def _coerce_int(data: Dict[str, Any], keys: Tuple[str, ...], default: int, *, logger) -> int:
    raw = _first_present(data, keys)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.debug("Failed to parse int from %r, using default %s", raw, default)
        return default


def _coerce_float(data: Dict[str, Any], keys: Tuple[str, ...], default: float, *, logger) -> float:
    raw = _first_present(data, keys)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except (TypeError, ValueError):
        logger.debug("Failed to parse float from %r, using default %s", raw, default)
        return default


def _coerce_optional_path(data: Dict[str, Any], keys: Tuple[str, ...]) -> Optional[Path]:
    raw = _first_present(data, keys)
    if raw is None or str(raw).strip() == "":
        return None
    return Path(str(raw).strip())


__all__ = ["LoggingSettings", "VidmarkConfig", "load_config", "read_config_file"]
