"""Coercion helpers for loosely typed invoice payload values.

Request payloads arrive from spreadsheet-like forms where numbers may be sent
as strings, empty strings or ``null`` and flags as ``"Yes"``/``"No"``. Every
helper in this module is total: it never raises on odd input and always tells
the caller which rule applied, so nothing unrepresentable (``NaN``,
``Infinity``) can reach a stored record.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")

# Month-first forms come before day-first ones: "03/04/2024" is March 4th.
_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%m/%d/%y",
    "%Y/%m/%d",
    "%d.%m.%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
)


class AmountKind(enum.Enum):
    """Outcome of parsing a numeric-ish value."""

    VALUE = "value"
    DEFAULT = "default"
    INVALID = "invalid"


@dataclass(frozen=True)
class ParsedAmount:
    """Tagged result of :func:`parse_amount`."""

    kind: AmountKind
    value: Decimal = ZERO
    raw: Any = None

    @property
    def is_valid(self) -> bool:
        return self.kind is not AmountKind.INVALID


def parse_amount(value: Any) -> ParsedAmount:
    """Parse ``value`` into a finite :class:`~decimal.Decimal`.

    ``None`` and blank strings map to :attr:`AmountKind.DEFAULT` with a zero
    value. Finite ints, floats, decimals and numeric strings map to
    :attr:`AmountKind.VALUE`. Everything else, booleans and non-finite numbers
    included, maps to :attr:`AmountKind.INVALID`.
    """

    if value is None:
        return ParsedAmount(AmountKind.DEFAULT, ZERO, value)
    if isinstance(value, bool):
        return ParsedAmount(AmountKind.INVALID, ZERO, value)

    if isinstance(value, Decimal):
        candidate = value
    elif isinstance(value, (int, float)):
        candidate = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return ParsedAmount(AmountKind.DEFAULT, ZERO, value)
        try:
            candidate = Decimal(text)
        except InvalidOperation:
            return ParsedAmount(AmountKind.INVALID, ZERO, value)
    else:
        return ParsedAmount(AmountKind.INVALID, ZERO, value)

    if not candidate.is_finite():
        return ParsedAmount(AmountKind.INVALID, ZERO, value)
    return ParsedAmount(AmountKind.VALUE, candidate + ZERO, value)


def parse_yes_no(value: Any) -> bool:
    """Return ``True`` only for ``True`` or a ``"yes"`` string.

    Matching ignores case and surrounding whitespace. Any other value,
    including ``"No"``, ``None``, numbers and malformed strings, is ``False``.
    """

    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "yes"
    return False


def normalize_invoice_date(value: Any) -> date | None:
    """Return a calendar date for ``value`` or ``None`` when it cannot be read."""

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    candidate = value.strip()
    if not candidate:
        return None

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(candidate, fmt).date()
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(candidate.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def blank_to_none(value: Any) -> str | None:
    """Return a stripped string, or ``None`` for missing and blank values."""

    if value is None:
        return None
    text = str(value).strip()
    return text or None


__all__ = [
    "AmountKind",
    "ParsedAmount",
    "ZERO",
    "blank_to_none",
    "normalize_invoice_date",
    "parse_amount",
    "parse_yes_no",
]
