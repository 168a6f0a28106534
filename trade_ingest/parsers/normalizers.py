"""
Cell-level normalizers: side, instrument type, numbers, free text.

None of these raise on bad input. They return None (or a default) and
leave it to the row validator to decide whether that is an error.
"""

from __future__ import annotations

import math
import re
from typing import Optional

from .models import InstrumentType, Side, SideValue


# ---------------------------------------------------------------------------
# Side / direction
# ---------------------------------------------------------------------------

# literal -> (direction, is order vocabulary)
_SIDE_MAP: dict[str, tuple[Side, bool]] = {
    "long": (Side.LONG, False),
    "l": (Side.LONG, False),
    "buy": (Side.LONG, True),
    "b": (Side.LONG, True),
    "short": (Side.SHORT, False),
    "sh": (Side.SHORT, False),
    "sell": (Side.SHORT, True),
    "s": (Side.SHORT, True),
}


def normalize_side(raw: Optional[str]) -> Optional[SideValue]:
    """Map a side cell to a direction. Unrecognized input returns None."""
    if raw is None:
        return None
    hit = _SIDE_MAP.get(raw.strip().lower())
    if hit is None:
        return None
    direction, order_term = hit
    return SideValue(direction=direction, order_term=order_term)


# ---------------------------------------------------------------------------
# Instrument type
# ---------------------------------------------------------------------------

_INSTRUMENT_WORDS: list[tuple[InstrumentType, frozenset[str]]] = [
    (InstrumentType.STOCK, frozenset({"stock", "stocks", "equity", "equities", "share", "shares"})),
    (InstrumentType.CRYPTO, frozenset({"crypto", "cryptocurrency", "btc", "eth", "coin", "token"})),
    (InstrumentType.FOREX, frozenset({"forex", "fx", "currency", "currencies"})),
    (InstrumentType.FUTURES, frozenset({"futures", "future", "futs"})),
    (InstrumentType.OPTIONS, frozenset({"options", "option", "opts", "calls", "puts"})),
]


def normalize_instrument_type(raw: Optional[str]) -> InstrumentType:
    """Classify an instrument-type cell; anything unknown is OTHER."""
    if not raw:
        return InstrumentType.OTHER
    word = raw.strip().lower()
    for instrument_type, words in _INSTRUMENT_WORDS:
        if word in words:
            return instrument_type
    return InstrumentType.OTHER


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------

_CURRENCY_RE = re.compile(r"[$€£¥,\s]")
_LEADING_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_numeric(raw: Optional[str]) -> Optional[float]:
    """Parse a formatted number like '$1,234.50' or '(12.00)'.

    Currency symbols, thousands separators and whitespace are stripped.
    Parentheses mark a negative amount, as in accounting exports. A trailing
    non-numeric suffix is ignored ('12.5USD' -> 12.5).
    """
    if raw is None or not raw.strip():
        return None

    cleaned = _CURRENCY_RE.sub("", raw)
    negative = False
    if len(cleaned) > 2 and cleaned.startswith("(") and cleaned.endswith(")"):
        negative = True
        cleaned = cleaned[1:-1]

    m = _LEADING_NUMBER_RE.match(cleaned)
    if not m:
        return None
    try:
        value = float(m.group(0))
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return -value if negative else value


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

def clean_text(raw: Optional[str]) -> Optional[str]:
    """Trim a free-text cell; empty becomes None."""
    if raw is None:
        return None
    text = raw.strip()
    return text or None
