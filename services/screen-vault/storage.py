"""In-memory OCR result store (process lifetime, nothing touches disk)."""

import threading
import uuid
from datetime import datetime

from models import OcrResult


class MemStorage:
    def __init__(self) -> None:
        self._results: dict[str, OcrResult] = {}
        self._lock = threading.Lock()

    def save_ocr_result(
        self,
        filename: str,
        original_name: str,
        extracted_text: str,
        confidence: float,
        word_count: int,
    ) -> OcrResult:
        """Store a recognition result, assigning its id and timestamp."""
        result = OcrResult(
            id=str(uuid.uuid4()),
            filename=filename,
            original_name=original_name,
            extracted_text=extracted_text,
            confidence=confidence,
            word_count=word_count,
            processed_at=datetime.now(),
        )
        with self._lock:
            self._results[result.id] = result
        return result

    def get_ocr_result(self, result_id: str) -> OcrResult | None:
        with self._lock:
            return self._results.get(result_id)

    def get_all_ocr_results(self) -> list[OcrResult]:
        with self._lock:
            return list(self._results.values())

    def clear_ocr_results(self) -> None:
        with self._lock:
            self._results.clear()


storage = MemStorage()
