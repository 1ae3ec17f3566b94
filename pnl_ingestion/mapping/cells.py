"""Numeric cell parsing for spreadsheet exports."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

_STRIP_RE = re.compile(r"[,\s\"]")

_ZERO = Decimal(0)


def parse_amount(text: str | None) -> Decimal:
    """
    Convert a raw cell to a finite Decimal.  Never raises.

    Empty cells and a lone ``-`` are 0.  Thousands separators, whitespace and
    quotes are dropped.  ``(500)`` is -500.  Anything unparseable, and
    NaN/Infinity, is 0.
    """
    if text is None:
        return _ZERO
    cleaned = _STRIP_RE.sub("", text)
    if cleaned in ("", "-"):
        return _ZERO

    negative = False
    if len(cleaned) >= 2 and cleaned.startswith("(") and cleaned.endswith(")"):
        negative = True
        cleaned = cleaned[1:-1]

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return _ZERO
    if not amount.is_finite():
        return _ZERO
    return -amount if negative else amount
