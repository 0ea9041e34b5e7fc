"""Shared test fixtures for screen vault tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add parent directory to path so we can import the modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from models import OcrDocument  # noqa: E402


@pytest.fixture
def sample_image_bytes() -> bytes:
    """A small phone-style screenshot (PNG) with text-like bars."""
    import cv2

    img = np.zeros((600, 360, 3), dtype=np.uint8)
    img[:] = (245, 245, 245)

    cv2.rectangle(img, (20, 40), (300, 60), (30, 30, 30), -1)
    cv2.rectangle(img, (20, 90), (260, 110), (30, 30, 30), -1)
    cv2.rectangle(img, (20, 140), (220, 160), (30, 30, 30), -1)

    _, buf = cv2.imencode(".png", img)
    return buf.tobytes()


@pytest.fixture
def wide_image_bytes() -> bytes:
    """A desktop-sized screenshot that needs no upscaling."""
    import cv2

    img = np.zeros((900, 1600, 3), dtype=np.uint8)
    img[:] = (200, 200, 200)
    _, buf = cv2.imencode(".jpg", img)
    return buf.tobytes()


@pytest.fixture
def invalid_bytes() -> bytes:
    """Non-image bytes for testing graceful degradation."""
    return b"this is not an image file at all"


@pytest.fixture
def fitness_text() -> str:
    """OCR of a fitness app daily summary."""
    return "10 pts cardio 3.204 pasos 1.159 cal 2,02 km 42 min"


@pytest.fixture
def transfer_text() -> str:
    """OCR of a bank transfer confirmation."""
    return "Fecha: 01/02/2024\nMonto: 150.00\nBanco: BBVA"


@pytest.fixture
def make_docs():
    """Build an OcrDocument batch from texts, named captura_1.png, captura_2.png, ..."""

    def _make(*texts: str) -> list[OcrDocument]:
        return [
            OcrDocument(source_file=f"captura_{i}.png", text=text, confidence=90.0)
            for i, text in enumerate(texts, start=1)
        ]

    return _make
