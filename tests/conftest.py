"""
Test configuration and fixtures for Brilliance tests.
"""
import io

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from brilliance.main import app
from brilliance.utils.metrics import reset_metrics


@pytest.fixture
def test_client():
    """Create test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def clean_metrics():
    """Reset metrics around each test."""
    reset_metrics()
    yield
    reset_metrics()


def _encode_png(pixels_rgb: np.ndarray) -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(pixels_rgb.astype(np.uint8)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def encode_png():
    """Encoder for (H, W, 3) uint8 RGB arrays to PNG bytes."""
    return _encode_png


@pytest.fixture
def two_tone_pixels():
    """20x10 image: 120 red pixels, 80 blue pixels."""
    img = np.zeros((10, 20, 3), dtype=np.uint8)
    img[:, :12] = (220, 30, 40)
    img[:, 12:] = (20, 60, 200)
    return img


@pytest.fixture
def two_tone_png(two_tone_pixels):
    return _encode_png(two_tone_pixels)
