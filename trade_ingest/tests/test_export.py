"""Tests for the importer / analytics hand-off helpers."""

from __future__ import annotations

import math

import pandas as pd
import pytest

from trade_ingest.parsers import generate_sample_csv, parse_csv
from trade_ingest.parsers.export import (
    FRAME_COLUMNS,
    IMPORT_BATCH_SIZE,
    batched,
    dedupe_key,
    deduplicate,
    to_dataframe,
    to_trade_records,
)

MIXED_CSV = (
    "Symbol,Side,Entry Price,Exit Price,Entry Date,Quantity,Broker\n"
    "AAPL,long,10,12,2024-01-15T10:00:00Z,5,Schwab\n"
    ",long,10,12,2024-01-15T10:00:00Z,5,Schwab\n"
    "MSFT,sell,300,,2024-01-16T10:00:00Z,2,Schwab\n"
)


# ── Records ────────────────────────────────────────────────────────────────

def test_records_cover_valid_rows_only():
    """The row without a symbol never becomes a record."""
    result = parse_csv(MIXED_CSV)
    records = to_trade_records(result)
    assert [r["asset"] for r in records] == ["AAPL", "MSFT"]


def test_record_defaults():
    """Missing commission and instrument type get importer defaults."""
    rec = to_trade_records(parse_csv(MIXED_CSV))[1]
    assert rec["direction"] == "short"
    assert rec["commission"] == 0.0
    assert rec["instrument_type"] == "other"
    assert rec["group_symbol"] == "MSFT"
    assert rec["exit_price"] is None
    assert rec["profit_loss"] is None
    assert rec["raw_row"]["Broker"] == "Schwab"


def test_record_carries_derived_pnl():
    rec = to_trade_records(parse_csv(MIXED_CSV))[0]
    assert rec["profit_loss"] == pytest.approx(10.0)
    assert rec["entry_datetime_utc"] == "2024-01-15T10:00:00.000Z"


# ── Dedupe / batching ──────────────────────────────────────────────────────

def test_deduplicate_keeps_first():
    """Notes are not part of the key; entry price is."""
    a = {"broker_id": "X", "account_id": None, "asset": "AAPL",
         "entry_datetime_utc": "2024-01-15T10:00:00.000Z", "entry_price": 10.0, "notes": "first"}
    b = dict(a, notes="second")
    c = dict(a, entry_price=11.0)
    assert dedupe_key(a) == dedupe_key(b)
    assert deduplicate([a, b, c]) == [a, c]


def test_batched_sizes():
    records = [{"i": i} for i in range(250)]
    sizes = [len(b) for b in batched(records)]
    assert IMPORT_BATCH_SIZE == 100
    assert sizes == [100, 100, 50]
    assert list(batched([], 10)) == []


def test_batched_rejects_bad_size():
    with pytest.raises(ValueError):
        list(batched([{}], 0))


# ── DataFrame ──────────────────────────────────────────────────────────────

def test_dataframe_columns_and_types():
    """Missing numbers are NaN and timestamps are tz-aware UTC."""
    df = to_dataframe(parse_csv(generate_sample_csv()))
    assert list(df.columns) == FRAME_COLUMNS
    assert len(df) == 7
    assert df["entry_price"].dtype == float
    assert str(df["entry_datetime_utc"].dt.tz) == "UTC"
    assert df["entry_datetime_utc"].iloc[0] == pd.Timestamp("2024-01-15T09:30:00Z")
    nvda = df[df["symbol"] == "NVDA"].iloc[0]
    assert math.isnan(nvda["exit_price"])
    assert pd.isna(nvda["exit_datetime_utc"])


def test_dataframe_valid_only_flag():
    result = parse_csv(MIXED_CSV)
    assert len(to_dataframe(result)) == 2
    full = to_dataframe(result, valid_only=False)
    assert len(full) == 3
    assert full["is_valid"].tolist() == [True, False, True]
    assert full["row_number"].tolist() == [1, 2, 3]


def test_dataframe_empty_result():
    """No valid rows still yields the full column set."""
    result = parse_csv("Symbol,Side,Entry Price,Date\n,,,")
    df = to_dataframe(result)
    assert df.empty
    assert list(df.columns) == FRAME_COLUMNS
