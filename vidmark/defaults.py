"""
Shared default values for encoding and logging.

Plain constants only; config, the media layer and the CLI all read them.
"""

DEFAULT_CODEC = "libx264"
DEFAULT_PIXEL_FORMAT = "yuv420p"
DEFAULT_CRF = 23
DEFAULT_PRESET = "veryfast"
DEFAULT_CONTAINER = "mp4"
DEFAULT_FALLBACK_FPS = 30.0
DEFAULT_LOG_LEVEL = "INFO"

OUTPUT_MIME_TYPES = {
    "mp4": "video/mp4",
    "mov": "video/quicktime",
    "matroska": "video/x-matroska",
    "webm": "video/webm",
}
