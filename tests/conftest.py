"""Shared pytest configuration and fixtures for the vidmark test suite."""

import io

import numpy as np
import pytest
from PIL import Image


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (real encode/decode)"
    )
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


# =============================================================================
# Shared Fixtures
# =============================================================================

RED = (255, 0, 0)
GRAY = 128


@pytest.fixture
def make_frame():
    """Factory for solid-colour RGB frames."""
    from vidmark.frame import Frame

    def _make(width: int = 64, height: int = 36, timestamp: float = 0.0, value: int = GRAY) -> Frame:
        data = np.full((height, width, 3), value, dtype=np.uint8)
        return Frame(data=data, timestamp=timestamp)

    return _make


@pytest.fixture
def make_watermark_array():
    """Factory for solid-colour watermark arrays (RGBA when ``alpha`` is given)."""

    def _make(width: int = 8, height: int = 4, color=RED, alpha=None) -> np.ndarray:
        channels = list(color) + ([alpha] if alpha is not None else [])
        return np.tile(np.array(channels, dtype=np.uint8), (height, width, 1))

    return _make


@pytest.fixture
def opaque_watermark(make_watermark_array):
    from vidmark.frame import WatermarkAsset

    return WatermarkAsset.from_array(make_watermark_array())


@pytest.fixture
def encode_image():
    """Encode an array to image bytes with Pillow."""

    def _encode(array: np.ndarray, fmt: str = "PNG") -> bytes:
        buffer = io.BytesIO()
        Image.fromarray(array).save(buffer, format=fmt)
        return buffer.getvalue()

    return _encode
