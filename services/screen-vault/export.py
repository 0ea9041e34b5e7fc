"""CSV and JSON renderings of OCR results and structured tables."""

import csv
import io
import re
from datetime import datetime, timezone

from models import OcrResult, StructuredTable

RESULTS_CSV_HEADER = (
    "Archivo",
    "Nombre Original",
    "Texto Extraído",
    "Confianza (%)",
    "Palabras",
    "Fecha de Procesamiento",
)


def format_processed_at(value: datetime) -> str:
    """Spanish locale style: ``18/10/2026, 09:05:03``."""
    return f"{value.day}/{value.month}/{value.year}, {value:%H:%M:%S}"


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _write_csv(header, rows) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buf.getvalue()


def results_to_csv(results: list[OcrResult]) -> str:
    return _write_csv(
        RESULTS_CSV_HEADER,
        (
            (
                r.filename,
                r.original_name,
                r.extracted_text,
                _format_number(r.confidence),
                r.word_count,
                format_processed_at(r.processed_at),
            )
            for r in results
        ),
    )


def results_to_json(results: list[OcrResult], exported_at: datetime | None = None) -> dict:
    exported_at = exported_at or datetime.now(timezone.utc)
    return {
        "export_date": exported_at.isoformat(),
        "total_results": len(results),
        "results": [r.model_dump(mode="json") for r in results],
    }


def table_to_csv(table: StructuredTable) -> str:
    """Header row from the columns, one line per row, cells written verbatim."""
    return _write_csv(table.columns, table.rows)


def table_filename(table: StructuredTable) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", table.title) + ".csv"
