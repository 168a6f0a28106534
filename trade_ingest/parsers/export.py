"""Hand-off helpers for code that consumes a CSVParseResult.

The importer wants insert-ready dicts (deduplicated, in batches); the
analytics side wants a DataFrame. Nothing here does I/O.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator

import numpy as np
import pandas as pd

from .models import CSVParseResult, InstrumentType, ParsedRow

IMPORT_BATCH_SIZE = 100

# Columns of the analytics frame, in order
FRAME_COLUMNS = [
    "row_number", "is_valid", "symbol", "side", "side_literal",
    "entry_price", "exit_price", "entry_datetime_utc", "exit_datetime_utc",
    "quantity", "profit_loss", "profit_loss_derived", "commission",
    "stop_loss", "take_profit", "leverage", "margin",
    "strategy", "broker_id", "account_id", "instrument_type", "notes",
    "group_symbol", "group_strategy",
]

_NUMERIC_COLUMNS = [
    "entry_price", "exit_price", "quantity", "profit_loss", "commission",
    "stop_loss", "take_profit", "leverage", "margin",
]


def _record(data: ParsedRow, raw: dict[str, str]) -> dict[str, Any]:
    return {
        "asset": data.symbol,
        "direction": data.side.value if data.side else None,
        "entry_price": data.entry_price,
        "exit_price": data.exit_price,
        "entry_datetime_utc": data.entry_datetime_utc,
        "exit_datetime_utc": data.exit_datetime_utc,
        "quantity": data.quantity,
        "profit_loss": data.profit_loss,
        "commission": data.commission or 0.0,
        "stop_loss": data.stop_loss,
        "take_profit": data.take_profit,
        "leverage": data.leverage,
        "margin": data.margin,
        "strategy": data.strategy,
        "broker_id": data.broker_id,
        "account_id": data.account_id,
        "instrument_type": (data.instrument_type or InstrumentType.OTHER).value,
        "notes": data.notes,
        "group_symbol": data.group_symbol or data.symbol,
        "group_strategy": data.group_strategy,
        "raw_row": dict(raw),
    }


def to_trade_records(result: CSVParseResult) -> list[dict[str, Any]]:
    """Insert-ready trade dicts, one per valid row, in file order."""
    return [_record(r.data, r.raw) for r in result.valid_rows]


def dedupe_key(record: dict[str, Any]) -> tuple:
    """Upsert conflict key used by the trade store."""
    return (
        record.get("broker_id"),
        record.get("account_id"),
        record.get("asset"),
        record.get("entry_datetime_utc"),
        record.get("entry_price"),
    )


def deduplicate(records: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep the first record for each dedupe key."""
    seen: set[tuple] = set()
    unique = []
    for record in records:
        key = dedupe_key(record)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


def batched(records: list[dict[str, Any]], size: int = IMPORT_BATCH_SIZE) -> Iterator[list[dict[str, Any]]]:
    if size <= 0:
        raise ValueError(f"batch size must be positive, got {size}")
    for start in range(0, len(records), size):
        yield records[start:start + size]


def to_dataframe(result: CSVParseResult, valid_only: bool = True) -> pd.DataFrame:
    """One row per parsed trade with typed columns.

    Missing numbers are NaN and datetimes are tz-aware UTC Timestamps.
    """
    rows = result.valid_rows if valid_only else list(result.rows)
    records = []
    for r in rows:
        d = r.data.to_dict(include_empty=True)
        for col in _NUMERIC_COLUMNS:
            if d[col] is None:
                d[col] = np.nan
        d["row_number"] = r.row_number
        d["is_valid"] = r.is_valid
        records.append(d)

    df = pd.DataFrame(records, columns=FRAME_COLUMNS)
    df[_NUMERIC_COLUMNS] = df[_NUMERIC_COLUMNS].astype(float)
    for col in ("entry_datetime_utc", "exit_datetime_utc"):
        df[col] = pd.to_datetime(df[col], utc=True, errors="coerce")
    df["profit_loss_derived"] = df["profit_loss_derived"].astype(bool)
    df["is_valid"] = df["is_valid"].astype(bool)
    return df.reset_index(drop=True)
