"""Regex field extractors for OCR'd screenshot text.

Every field kind is an ordered tuple of matchers tried in sequence; the first
one that yields a value wins. Nothing in here raises for unmatched text, an
absent field is simply ``None``.
"""

import re
from collections.abc import Callable, Iterator
from enum import Enum
from typing import NamedTuple

# Any number as it appears in fitness screens: 10, 3.204, 2,02, 1.159.
# Digits are spelled [0-9] so only ASCII digits count, never full-width or Arabic-Indic.
NUMBER_TOKEN = re.compile(r"([0-9]{1,5}[.,]?[0-9]{0,3})")
AMOUNT_NUMBER = re.compile(r"([0-9]{1,6}(?:[.,][0-9]{2})?)")

# Accented Latin-1 letters (Á..ú) are accepted in labels along with ñ/Ñ
_LABEL_CHARS = r"A-Za-zÁ-úñÑ"

LABEL_VALUE_PATTERN = re.compile(rf"([{_LABEL_CHARS}\s]{{2,25}})\s*:\s*([^\n\r:]{{1,50}})")
LABEL_NUMBER_PATTERN = re.compile(rf"([{_LABEL_CHARS}]{{2,15}})\s+([0-9]{{1,10}})")
LABELED_LINE_PATTERN = re.compile(rf"([{_LABEL_CHARS} \t]+):[ \t]*([^\n\r]+)")


class FieldKind(str, Enum):
    DATE = "fecha"
    TIME = "hora"
    AMOUNT = "monto"
    INSTITUTION = "institucion"
    PTS_CARDIO = "pts_cardio"
    STEPS = "pasos"
    CALORIES = "cal"
    KM = "km"
    ACTIVE_MINUTES = "min_actividad"


class Matcher(NamedTuple):
    """One regex alternative.

    Without a ``value_pattern`` the whole match is the value; otherwise the
    first group of ``value_pattern`` found inside the match is.
    """

    pattern: re.Pattern
    value_pattern: re.Pattern | None = None

    def extract(self, text: str) -> str | None:
        match = self.pattern.search(text)
        if match is None:
            return None
        matched = match.group(0)
        if self.value_pattern is None:
            return matched.strip() or None
        inner = self.value_pattern.search(matched)
        return inner.group(1) if inner else None


def _m(regex: str, flags: int = 0, value_pattern: re.Pattern | None = None) -> Matcher:
    return Matcher(re.compile(regex, flags), value_pattern)


_I = re.IGNORECASE

FIELD_MATCHERS: dict[FieldKind, tuple[Matcher, ...]] = {
    FieldKind.DATE: (
        _m(r"([0-9]{1,2})[/\-.]([0-9]{1,2})[/\-.]([0-9]{2,4})"),
        _m(r"([0-9]{1,2})\s+de\s+([A-Za-z0-9_]+)\s+de\s+([0-9]{4})", _I),
    ),
    FieldKind.TIME: (
        _m(r"([0-9]{1,2}):([0-9]{2})(?::([0-9]{2}))?\s*(am|pm|AM|PM)?"),
    ),
    FieldKind.AMOUNT: (
        _m(r"(?:S/|[$€£¥₹])\s*([0-9]{1,6}(?:[.,][0-9]{2})?)", value_pattern=AMOUNT_NUMBER),
        _m(r"(?:monto|amount|valor|total)[\s:]*([0-9]{1,6}(?:[.,][0-9]{2})?)", _I, AMOUNT_NUMBER),
    ),
    FieldKind.INSTITUTION: (
        _m(r"(BBVA|Santander|BCP|Interbank|BanBif|Scotiabank|Banco de Crédito)", _I),
    ),
    FieldKind.PTS_CARDIO: (
        _m(r"(?:^|\s)([0-9]{1,3})(?=\s|$)", value_pattern=NUMBER_TOKEN),
        _m(r"([0-9]{1,3})(?:\s*pts|\s*cardio)", _I, NUMBER_TOKEN),
        _m(r"(?:cardio|pts)[\s:]*([0-9]{1,3})", _I, NUMBER_TOKEN),
    ),
    FieldKind.STEPS: (
        _m(r"([0-9]{1,2}[.,][0-9]{3})", value_pattern=NUMBER_TOKEN),
        _m(r"(?:pasos|steps)[\s:]*([0-9]{1,2}[.,][0-9]{3})", _I, NUMBER_TOKEN),
        _m(r"([0-9]{1,2}[.,][0-9]{3})(?:\s*pasos|\s*steps)", _I, NUMBER_TOKEN),
    ),
    FieldKind.CALORIES: (
        _m(r"([0-9]{1,2}[.,][0-9]{3})(?:\s*cal|\s*kcal)", _I, NUMBER_TOKEN),
        _m(r"(?:cal|kcal)[\s:]*([0-9]{1,2}[.,][0-9]{3})", _I, NUMBER_TOKEN),
        _m(r"([0-9]{1,2}[.,][0-9]{3}).*?cal", _I, NUMBER_TOKEN),
    ),
    FieldKind.KM: (
        _m(r"([0-9]{1,2}[.,][0-9]{1,2})(?:\s*km)", _I, NUMBER_TOKEN),
        _m(r"(?:km)[\s:]*([0-9]{1,2}[.,][0-9]{1,2})", _I, NUMBER_TOKEN),
        _m(r"([0-9]{1,2}[.,][0-9]{1,2}).*?km", _I, NUMBER_TOKEN),
    ),
    FieldKind.ACTIVE_MINUTES: (
        _m(r"([0-9]{1,3})(?:\s*min|\s*minutos)", _I, NUMBER_TOKEN),
        _m(r"(?:min|minutos|actividad)[\s:]*([0-9]{1,3})", _I, NUMBER_TOKEN),
        _m(r"([0-9]{1,3}).*?(?:min|actividad)", _I, NUMBER_TOKEN),
    ),
}

FITNESS_KINDS = (
    FieldKind.PTS_CARDIO,
    FieldKind.STEPS,
    FieldKind.CALORIES,
    FieldKind.KM,
    FieldKind.ACTIVE_MINUTES,
)

# Range heuristics for bare numbers, in claim priority order
FITNESS_RANGES: tuple[tuple[FieldKind, Callable[[float], bool]], ...] = (
    (FieldKind.PTS_CARDIO, lambda v: 1 <= v <= 100 and v.is_integer()),
    (FieldKind.STEPS, lambda v: 1000 < v < 50000),
    (FieldKind.CALORIES, lambda v: 500 < v < 5000),
    (FieldKind.KM, lambda v: 0.1 < v < 100 and not v.is_integer()),
    (FieldKind.ACTIVE_MINUTES, lambda v: 10 < v < 500 and v.is_integer()),
)


def extract_field(text: str, kind: FieldKind) -> str | None:
    """Return the first value any matcher for ``kind`` finds in ``text``."""
    for matcher in FIELD_MATCHERS[kind]:
        value = matcher.extract(text)
        if value:
            return value
    return None


def parse_number_token(token: str) -> float:
    """Read an OCR number token, treating its first comma as a decimal point."""
    return float(token.replace(",", ".", 1))


def extract_fitness_metrics(text: str) -> dict[str, str]:
    """Extract the five fitness metrics from one screenshot's text.

    Keyword/format regexes run first; any metric still missing is then
    claimed by bare numbers according to ``FITNESS_RANGES``. Each number
    goes to the first empty slot whose range accepts it.
    """
    metrics: dict[str, str] = {}
    for kind in FITNESS_KINDS:
        value = extract_field(text, kind)
        if value:
            metrics[kind.value] = value

    for token in NUMBER_TOKEN.findall(text):
        number = parse_number_token(token)
        for kind, accepts in FITNESS_RANGES:
            if kind.value not in metrics and accepts(number):
                metrics[kind.value] = token
                break

    return metrics


def scan_label_values(text: str) -> Iterator[tuple[str, str]]:
    """Yield ``(label, value)`` for every ``label: value`` fragment."""
    for match in LABEL_VALUE_PATTERN.finditer(text):
        label, value = match.group(1).strip(), match.group(2).strip()
        if len(label) > 1 and value:
            yield label, value


def scan_label_numbers(text: str) -> Iterator[tuple[str, str]]:
    """Yield ``(label, digits)`` for fragments like ``Paso 1`` or ``Cal 123``."""
    for match in LABEL_NUMBER_PATTERN.finditer(text):
        yield match.group(1), match.group(2)


def scan_labeled_lines(text: str) -> Iterator[tuple[str, str]]:
    """Yield ``(label, rest of line)`` for lines shaped like ``Nombre: Juan``."""
    for match in LABELED_LINE_PATTERN.finditer(text):
        label, value = match.group(1).strip(), match.group(2).strip()
        if label and value:
            yield label, value
