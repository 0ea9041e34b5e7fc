"""Batch pattern analysis: turn a set of OCR'd screenshots into structured tables."""

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence

from pydantic import ValidationError

from detectors import detect_banking, detect_fitness, detect_labels, detect_numbered_list
from models import OcrDocument, StructuredTable

logger = logging.getLogger(__name__)

# Structure is inferred by comparing documents; a single image never yields a table
MIN_BATCH_SIZE = 2

Detector = Callable[[Sequence[OcrDocument]], StructuredTable | None]

DETECTORS: tuple[Detector, ...] = (
    detect_fitness,
    detect_banking,
    detect_numbered_list,
    detect_labels,
)


class InvalidDocumentError(ValueError):
    """A batch entry is not a usable OCR document (missing file name, non-string text)."""


def validate_documents(documents: Iterable[OcrDocument | Mapping]) -> list[OcrDocument]:
    """Coerce mappings to OcrDocument and reject malformed entries."""
    validated = []
    for index, doc in enumerate(documents):
        if isinstance(doc, OcrDocument):
            validated.append(doc)
            continue
        try:
            validated.append(OcrDocument.model_validate(doc))
        except ValidationError as e:
            raise InvalidDocumentError(f"document {index} is invalid: {e}") from e
    return validated


def analyze_batch(documents: Iterable[OcrDocument | Mapping]) -> list[StructuredTable]:
    """Run every detector over the batch and return the tables they found.

    Tables come back in detector order (fitness, banking, numbered list,
    labels). Batches with fewer than two documents return an empty list.
    """
    batch = validate_documents(documents)
    if len(batch) < MIN_BATCH_SIZE:
        return []

    tables = []
    for detector in DETECTORS:
        table = detector(batch)
        if table is not None:
            tables.append(table)

    logger.info(
        "Pattern analysis: %d documents -> %d tables %s",
        len(batch),
        len(tables),
        [t.detected_pattern for t in tables],
    )
    return tables
