"""Canonical field keys for labels detected in OCR text.

Collapses near-duplicate labels ("Nro", "No.", "Número") into one key so the
same concept never ends up as two columns.
"""

import re
from types import MappingProxyType

# Spanish accent variants folded to their base letter (applied after lowercasing)
ACCENT_TABLE = str.maketrans({
    **dict.fromkeys("áàäâã", "a"),
    **dict.fromkeys("éèëê", "e"),
    **dict.fromkeys("íìïî", "i"),
    **dict.fromkeys("óòöôõ", "o"),
    **dict.fromkeys("úùüû", "u"),
    "ñ": "n",
})

FIELD_SYNONYMS = MappingProxyType({
    "paso": "paso",
    "cal": "cal",
    "numero": "numero",
    "nro": "numero",
    "no": "numero",
    "monto": "monto",
    "cantidad": "monto",
    "valor": "monto",
    "fecha": "fecha",
    "date": "fecha",
    "hora": "hora",
    "time": "hora",
    "banco": "institucion",
    "institucion": "institucion",
    "cuenta": "numero_cuenta",
    "account": "numero_cuenta",
})

_NON_KEY_CHARS = re.compile(r"[^a-z0-9]+")


def normalize_field_name(label: str) -> str:
    """Map a raw label to its canonical field key.

    Unknown labels keep their cleaned form, so the result is always a valid
    key and ``normalize_field_name(normalize_field_name(x))`` is stable.
    """
    cleaned = label.lower().translate(ACCENT_TABLE)
    cleaned = _NON_KEY_CHARS.sub("_", cleaned).strip("_")
    return FIELD_SYNONYMS.get(cleaned, cleaned)
