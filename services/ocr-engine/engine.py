"""Tesseract wrapper for screenshot OCR.

Single engine instance per process; text and a word-level mean confidence
come from one ``image_to_data`` pass.
"""

import io
import logging

import pytesseract
from PIL import Image, UnidentifiedImageError

from config import settings

logger = logging.getLogger(__name__)

_engine: "OCREngine | None" = None


class InvalidImageError(ValueError):
    """Bytes could not be decoded as an image."""


class OCREngine:
    """Process-wide wrapper around pytesseract."""

    def __init__(self) -> None:
        if settings.TESSERACT_CMD:
            pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD

        self._version = str(pytesseract.get_tesseract_version())
        self._languages = set(pytesseract.get_languages(config=""))
        logger.info(
            "Tesseract %s loaded (languages=%s)",
            self._version,
            ",".join(sorted(self._languages)),
        )

        missing = set(settings.DEFAULT_LANGUAGE.split("+")) - self._languages
        if missing:
            logger.warning("Default language pack(s) not installed: %s", ",".join(sorted(missing)))

    @property
    def version(self) -> str:
        return self._version

    def recognize(self, image_bytes: bytes, language: str | None = None) -> tuple[str, float]:
        """Run OCR on an image.

        Returns (text, confidence) with confidence as the mean word
        confidence on a 0-100 scale (0 when no words were found).
        """
        try:
            image = Image.open(io.BytesIO(image_bytes))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidImageError(f"Cannot decode image: {e}") from e

        data = pytesseract.image_to_data(
            image,
            lang=language or settings.DEFAULT_LANGUAGE,
            config=settings.TESSERACT_CONFIG,
            output_type=pytesseract.Output.DICT,
        )
        return _assemble_text(data), _mean_confidence(data)


def _assemble_text(data: dict) -> str:
    """Rebuild text from image_to_data output, one line per tesseract line."""
    lines: dict[tuple[int, int, int], list[str]] = {}
    for i, word in enumerate(data["text"]):
        if not word or not word.strip():
            continue
        key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
        lines.setdefault(key, []).append(word.strip())
    return "\n".join(" ".join(words) for words in lines.values())


def _mean_confidence(data: dict) -> float:
    confidences = [
        float(conf)
        for word, conf in zip(data["text"], data["conf"])
        if word and word.strip() and float(conf) >= 0
    ]
    if not confidences:
        return 0.0
    return sum(confidences) / len(confidences)


def init_engine() -> None:
    """Initialize the singleton engine at startup."""
    global _engine
    _engine = OCREngine()


def get_engine() -> OCREngine:
    """Get the initialized engine. Raises if not initialized."""
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine() first.")
    return _engine
