"""Allow ``python -m vidmark`` to watermark a video file from the shell."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import signal
import sys
from pathlib import Path
from typing import Optional, Sequence

from vidmark.config import load_config
from vidmark.core.errors import ProcessingCancelled, VidmarkError
from vidmark.core.logging_config import configure_logging
from vidmark.core.logging_utils import get_module_logger
from vidmark.pipeline import PipelineResult, watermark_video

logger = get_module_logger(__name__)

LOG_LEVELS = ("critical", "error", "warning", "info", "debug")
STATUS_COMPLETE = "Complete! Download your watermarked video."


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="vidmark",
        description="Composite a watermark that cycles between corners every 3 seconds",
    )
    parser.add_argument("video", type=Path, help="Input video file")
    parser.add_argument("watermark", type=Path, help="Watermark image (PNG with alpha recommended)")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output file (default: <video>_watermarked.<container>)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional key=value config file for encoding and logging",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default=None,
        help="Logging verbosity (default: from config, else info)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional path for a rotating log file",
    )
    return parser.parse_args(argv)


def default_output_path(video: Path, container: str) -> Path:
    suffix = "mkv" if container == "matroska" else container
    return video.with_name(f"{video.stem}_watermarked.{suffix}")


async def _run(video: bytes, watermark: bytes, config) -> PipelineResult:
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # add_signal_handler is unavailable on Windows event loops
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, cancel_event.set)

    result = await watermark_video(
        video,
        watermark,
        settings=config.encode,
        fallback_fps=config.fallback_fps,
        cancel_event=cancel_event,
    )
    if cancel_event.is_set():
        raise ProcessingCancelled("Interrupted while the output was being finalized")
    return result


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    config = load_config(
        args.config,
        {"logging.level": args.log_level, "logging.file": args.log_file},
    )
    configure_logging(config.logging.level, log_file=config.logging.file)

    try:
        video = args.video.read_bytes()
    except OSError as exc:
        print(f"Could not read video: {exc}", file=sys.stderr)
        return 1
    try:
        watermark = args.watermark.read_bytes()
    except OSError as exc:
        print(f"Watermark could not be loaded: {exc}", file=sys.stderr)
        return 1

    try:
        result = asyncio.run(_run(video, watermark, config))
    except (KeyboardInterrupt, ProcessingCancelled):
        print(ProcessingCancelled.status_message, file=sys.stderr)
        return 130
    except VidmarkError as exc:
        logger.debug("Pipeline failed", exc_info=True)
        print(f"{exc.status_message} {exc}", file=sys.stderr)
        return 1

    output = args.output or default_output_path(args.video, config.encode.container)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(result.data)
    logger.info("Wrote %s (%d frames, %d bytes)", output, result.frame_count, result.size)
    print(STATUS_COMPLETE)
    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
