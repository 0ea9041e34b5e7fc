"""Pattern detectors: each one tries to explain a whole batch with one table.

A detector returns a StructuredTable or None when the batch shows too little
evidence for its pattern. Detectors only read the documents and keep their
working state local, so they can run in any order or in parallel.
"""

import logging
import re
from collections.abc import Sequence
from types import MappingProxyType
from typing import NamedTuple

from field_extractors import (
    FieldKind,
    extract_field,
    extract_fitness_metrics,
    scan_label_numbers,
    scan_label_values,
    scan_labeled_lines,
)
from field_normalizer import normalize_field_name
from models import OcrDocument, StructuredTable
from table_assembler import FILE_KEY, FieldEntry, assemble_table

logger = logging.getLogger(__name__)

MIN_FITNESS_FIELDS = 2
MIN_BANKING_FIELDS = 1
MIN_LABEL_DOCUMENTS = 2
MIN_NUMBERED_ITEMS = 2

FITNESS_LABELS = MappingProxyType({
    "pts_cardio": "Pts Cardio",
    "pasos": "Pasos",
    "cal": "Cal",
    "km": "Km",
    "min_actividad": "Min de Actividad",
})

BANKING_LABELS = MappingProxyType({
    "fecha": "Fecha",
    "hora": "Hora",
    "monto": "Monto",
    "numero_cuenta": "Número de Cuenta",
    "institucion": "Institución",
    "numero_documento": "Número de Documento",
    "tipo_operacion": "Tipo de Operación",
    "beneficiario": "Beneficiario",
})

# Specific extractors layered under the generic label scan
BANKING_FALLBACKS = (
    FieldKind.DATE,
    FieldKind.TIME,
    FieldKind.AMOUNT,
    FieldKind.INSTITUTION,
)


class ListPattern(NamedTuple):
    tag: str
    label: str
    confidence: float
    item: re.Pattern
    prefix: re.Pattern
    min_items: int


STEPS = ListPattern(
    tag="steps",
    label="Pasos",
    confidence=0.9,
    item=re.compile(r"(?:paso|step|etapa)\s*([0-9]+)[:.]?\s*(.+)", re.IGNORECASE),
    prefix=re.compile(r"(?:paso|step|etapa)\s*[0-9]+[:.]?\s*", re.IGNORECASE),
    min_items=1,
)

NUMBERED_LIST = ListPattern(
    tag="numbered_list",
    label="Lista Numerada",
    confidence=0.8,
    item=re.compile(r"([0-9]+)[.):]?\s*([^0-9\n]+)"),
    prefix=re.compile(r"^[0-9]+[.):]?\s*"),
    min_items=MIN_NUMBERED_ITEMS,
)

LIST_PATTERNS = (STEPS, NUMBERED_LIST)


def detect_fitness(documents: Sequence[OcrDocument]) -> StructuredTable | None:
    """Fitness app summaries: cardio points, steps, calories, km, active minutes."""
    entries: list[FieldEntry] = []
    for doc in documents:
        metrics = extract_fitness_metrics(doc.text)
        if len(metrics) >= MIN_FITNESS_FIELDS:
            entries.append((doc.source_file, metrics))

    logger.debug("fitness: %d/%d documents qualify", len(entries), len(documents))
    return assemble_table(entries, "Datos de Actividad Física", "fitness_data", FITNESS_LABELS)


def extract_transaction_fields(text: str) -> dict[str, str]:
    """Field map for one banking/payment screenshot.

    Claims are first-come: generic ``label: value`` pairs, then ``label
    number`` pairs, then the date/time/amount/institution extractors for
    whatever those left unclaimed.
    """
    fields: dict[str, str] = {}

    for label, value in (*scan_label_values(text), *scan_label_numbers(text)):
        key = normalize_field_name(label)
        if key and key != FILE_KEY and key not in fields:
            fields[key] = value

    for kind in BANKING_FALLBACKS:
        if kind.value in fields:
            continue
        value = extract_field(text, kind)
        if value:
            fields[kind.value] = value

    return fields


def detect_banking(documents: Sequence[OcrDocument]) -> StructuredTable | None:
    """Transfers, receipts and anything else with recognisable labelled fields."""
    entries: list[FieldEntry] = []
    for doc in documents:
        fields = extract_transaction_fields(doc.text)
        if len(fields) >= MIN_BANKING_FIELDS:
            entries.append((doc.source_file, fields))

    logger.debug("banking: %d/%d documents qualify", len(entries), len(documents))
    return assemble_table(entries, "Datos Estructurados Detectados", "dynamic_data", BANKING_LABELS)


def list_items(text: str, pattern: ListPattern) -> list[str]:
    """Item texts of ``pattern`` found in ``text`` (already lower-cased)."""
    return [pattern.prefix.sub("", match.group(0)).strip() for match in pattern.item.finditer(text)]


def detect_numbered_list(documents: Sequence[OcrDocument]) -> StructuredTable | None:
    """Step-by-step instructions or plain numbered lists.

    The pattern type with the highest confidence seen anywhere in the batch
    is used for every document.
    """
    texts = [doc.text.lower() for doc in documents]

    candidates = [
        pattern
        for text in texts
        for pattern in LIST_PATTERNS
        if len(list_items(text, pattern)) >= pattern.min_items
    ]
    if not candidates:
        return None

    best = max(candidates, key=lambda p: p.confidence)

    entries: list[tuple[str, list[str]]] = []
    for doc, text in zip(documents, texts):
        items = list_items(text, best)
        if items:
            entries.append((doc.source_file, items))

    if not entries:
        return None

    width = max(len(items) for _, items in entries)
    keys = [str(position) for position in range(1, width + 1)]
    labels = {key: f"{best.label} {key}" for key in keys}

    logger.debug("numbered list: pattern=%s rows=%d width=%d", best.tag, len(entries), width)
    return assemble_table(
        [(source, dict(zip(keys, items))) for source, items in entries],
        f"Datos Estructurados - {best.label}",
        best.tag,
        labels,
        columns=keys,
    )


def extract_labeled_lines(text: str) -> dict[str, str]:
    """First value per canonical label among the ``label: value`` lines."""
    fields: dict[str, str] = {}
    for label, value in scan_labeled_lines(text):
        key = normalize_field_name(label)
        if key and key != FILE_KEY and key not in fields:
            fields[key] = value
    return fields


def detect_labels(documents: Sequence[OcrDocument]) -> StructuredTable | None:
    """Generic ``label: value`` forms repeated across screenshots.

    Only labels present in at least ``MIN_LABEL_DOCUMENTS`` documents become
    columns; one-off OCR misreads stay out of the table.
    """
    entries: list[FieldEntry] = []
    document_counts: dict[str, int] = {}
    for doc in documents:
        fields = extract_labeled_lines(doc.text)
        if not fields:
            continue
        entries.append((doc.source_file, fields))
        for key in fields:
            document_counts[key] = document_counts.get(key, 0) + 1

    columns = [key for key, count in document_counts.items() if count >= MIN_LABEL_DOCUMENTS]
    logger.debug("labels: %d candidate labels, %d shared", len(document_counts), len(columns))
    if not columns:
        return None

    return assemble_table(
        entries,
        "Datos Estructurados - Etiquetas",
        "labeled_data",
        BANKING_LABELS,
        columns=columns,
    )
