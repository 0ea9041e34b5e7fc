"""Build rectangular structured tables from per-document field maps."""

from collections.abc import Iterable, Mapping, Sequence

from models import PatternTag, StructuredTable

FILE_COLUMN = "Archivo"
FILE_KEY = "archivo"

FieldEntry = tuple[str, Mapping[str, str]]


def display_label(key: str, labels: Mapping[str, str]) -> str:
    """Column header for ``key``: known label, else ``numero_cuenta`` -> ``Numero cuenta``."""
    if key in labels:
        return labels[key]
    text = key.replace("_", " ")
    return text[:1].upper() + text[1:]


def collect_columns(field_maps: Iterable[Mapping[str, str]]) -> list[str]:
    """Union of populated keys across field maps, in first-seen order."""
    seen: dict[str, None] = {}
    for field_map in field_maps:
        for key, value in field_map.items():
            if value:
                seen.setdefault(key, None)
    return list(seen)


def assemble_table(
    entries: Sequence[FieldEntry],
    title: str,
    detected_pattern: PatternTag,
    labels: Mapping[str, str],
    columns: Sequence[str] | None = None,
) -> StructuredTable | None:
    """Pack ``(source_file, field_map)`` entries into a StructuredTable.

    Rows keep the order of ``entries``; fields a document lacks become empty
    cells. Identical rows are kept. Returns None when there is nothing to
    show (no rows or no data columns).
    """
    if not entries:
        return None

    keys = list(columns) if columns is not None else collect_columns(fm for _, fm in entries)
    if not keys:
        return None

    rows = [
        [source_file, *(field_map.get(key) or "" for key in keys)]
        for source_file, field_map in entries
    ]

    return StructuredTable(
        title=title,
        columns=[FILE_COLUMN, *(display_label(key, labels) for key in keys)],
        rows=rows,
        detected_pattern=detected_pattern,
        source_files=[source_file for source_file, _ in entries],
    )
