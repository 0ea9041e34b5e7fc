"""OCR pipeline for uploaded screenshots: preprocess, recognize, store.

Failures are per file; one unreadable image never aborts the batch.
"""

import logging
import math
import time
from collections.abc import Sequence
from typing import NamedTuple

from models import OcrResult
from ocr_client import OCRClient, OCRServiceError, OCRServiceUnavailable
from preprocessing import preprocess
from storage import MemStorage

logger = logging.getLogger(__name__)


class Upload(NamedTuple):
    original_name: str
    content_type: str
    data: bytes


def count_words(text: str) -> int:
    return len(text.split())


def round_confidence(confidence: float) -> int:
    """Round half up, as OCR engines report it to users (87.5 -> 88)."""
    return int(math.floor(confidence + 0.5))


def generated_filename(content_type: str, index: int) -> str:
    extension = content_type.split("/")[-1] or "bin"
    return f"file_{int(time.time() * 1000)}_{index}.{extension}"


def recognize_image(image_bytes: bytes, ocr_client: OCRClient) -> tuple[str, float]:
    """Preprocess one image and OCR it. Returns (stripped text, confidence)."""
    preprocessed = preprocess(image_bytes)
    logger.info(
        "Preprocessed image: %d bytes -> %d bytes",
        len(image_bytes), len(preprocessed),
    )
    text, confidence = ocr_client.recognize(preprocessed)
    return text.strip(), confidence


def process_uploads(
    uploads: Sequence[Upload],
    ocr_client: OCRClient,
    store: MemStorage,
) -> list[OcrResult]:
    """OCR every upload in order and store the successes."""
    results: list[OcrResult] = []
    for index, upload in enumerate(uploads):
        start = time.monotonic()
        try:
            text, confidence = recognize_image(upload.data, ocr_client)
        except (OCRServiceUnavailable, OCRServiceError) as e:
            logger.error("Error processing file %s: %s", upload.original_name, e)
            continue

        result = store.save_ocr_result(
            filename=generated_filename(upload.content_type, index),
            original_name=upload.original_name,
            extracted_text=text,
            confidence=round_confidence(confidence),
            word_count=count_words(text),
        )
        logger.info(
            "Recognized %s: %d words, confidence=%d, %dms",
            upload.original_name,
            result.word_count,
            result.confidence,
            int((time.monotonic() - start) * 1000),
        )
        results.append(result)

    return results
