"""Tests for cell normalizers (side, instrument type, numbers, text)."""

from __future__ import annotations

import pytest

from trade_ingest.parsers.models import InstrumentType, Side
from trade_ingest.parsers.normalizers import (
    clean_text,
    normalize_instrument_type,
    normalize_side,
    parse_numeric,
)


# ── Side ───────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("raw,direction,order_term", [
    ("long", Side.LONG, False),
    (" L ", Side.LONG, False),
    ("BUY", Side.LONG, True),
    ("b", Side.LONG, True),
    ("short", Side.SHORT, False),
    ("SH", Side.SHORT, False),
    ("Sell", Side.SHORT, True),
    ("s", Side.SHORT, True),
])
def test_normalize_side(raw, direction, order_term):
    side = normalize_side(raw)
    assert side is not None
    assert side.direction is direction
    assert side.order_term is order_term


def test_normalize_side_unknown():
    assert normalize_side("hold") is None
    assert normalize_side("") is None
    assert normalize_side(None) is None


def test_side_sign():
    assert Side.LONG.sign == 1
    assert Side.SHORT.sign == -1


# ── Instrument type ────────────────────────────────────────────────────────

@pytest.mark.parametrize("raw,expected", [
    ("stock", InstrumentType.STOCK),
    ("Equities", InstrumentType.STOCK),
    (" crypto ", InstrumentType.CRYPTO),
    ("BTC", InstrumentType.CRYPTO),
    ("fx", InstrumentType.FOREX),
    ("Futs", InstrumentType.FUTURES),
    ("puts", InstrumentType.OPTIONS),
    ("perpetual", InstrumentType.OTHER),
    ("", InstrumentType.OTHER),
    (None, InstrumentType.OTHER),
])
def test_normalize_instrument_type(raw, expected):
    assert normalize_instrument_type(raw) is expected


# ── Numbers ────────────────────────────────────────────────────────────────

def test_parse_numeric_strips_currency_formatting():
    assert parse_numeric("$1,234.50") == pytest.approx(1234.50)
    assert parse_numeric(" £99 ") == pytest.approx(99.0)
    assert parse_numeric("€1,000") == pytest.approx(1000.0)


def test_parse_numeric_empty_and_garbage():
    assert parse_numeric("") is None
    assert parse_numeric("   ") is None
    assert parse_numeric(None) is None
    assert parse_numeric("abc") is None
    assert parse_numeric("-") is None


def test_parse_numeric_signs_and_parentheses():
    """Parentheses mean negative, as in accounting exports."""
    assert parse_numeric("-3.25") == pytest.approx(-3.25)
    assert parse_numeric("($12.50)") == pytest.approx(-12.50)
    assert parse_numeric("+7") == pytest.approx(7.0)


def test_parse_numeric_ignores_trailing_text():
    assert parse_numeric("12.5 USD") == pytest.approx(12.5)


def test_parse_numeric_rejects_infinite():
    """1e999 overflows to inf and is treated as unreadable."""
    assert parse_numeric("1e999") is None


# ── Text ───────────────────────────────────────────────────────────────────

def test_clean_text():
    assert clean_text("  Momentum ") == "Momentum"
    assert clean_text("   ") is None
    assert clean_text(None) is None
