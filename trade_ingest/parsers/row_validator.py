"""
Per-row validation: raw cells -> canonical ParsedRow + field errors.

Every rule runs independently so one bad cell never hides another; the
row is valid iff no rule produced an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .datetime_resolver import DEFAULT_TIMEZONE, parse_datetime
from .field_aliases import source_header
from .models import ParsedRow, ValidationError
from .normalizers import clean_text, normalize_instrument_type, normalize_side, parse_numeric

logger = logging.getLogger(__name__)

# Optional numerics that are dropped (not errors) when negative
_NON_NEGATIVE_FIELDS = ("stop_loss", "take_profit", "leverage", "margin")


@dataclass(frozen=True)
class RowValidation:
    is_valid: bool
    errors: tuple[ValidationError, ...]
    data: ParsedRow


class _RowReader:
    """Looks up a canonical field's cell through the header mapping."""

    def __init__(self, raw: Mapping[str, str], mapping: Mapping[str, str]) -> None:
        self.raw = raw
        self.mapping = mapping

    def get(self, canonical: str) -> Optional[str]:
        header = source_header(self.mapping, canonical)
        if header is None:
            return None
        return self.raw.get(header)

    def number(self, canonical: str) -> Optional[float]:
        return parse_numeric(self.get(canonical))


def resolve_prices(
    entry: Optional[float],
    exit_: Optional[float],
    fill: Optional[float],
) -> tuple[Optional[float], Optional[float]]:
    """Assign a lone fill price to entry or exit based on what the row has.

    - only fill           -> fill is the entry (opening row)
    - entry, no exit      -> fill is the exit (closing fill)
    - exit, no entry      -> fill is the entry
    - both already present -> fill is ignored
    """
    if fill is None or fill <= 0:
        return entry, exit_
    if entry is None and exit_ is None:
        return fill, None
    if entry is not None and exit_ is None:
        return entry, fill
    if entry is None and exit_ is not None:
        return fill, exit_
    return entry, exit_


def validate_row(
    raw: Mapping[str, str],
    mapping: Mapping[str, str],
    timezone_hint: Optional[str] = DEFAULT_TIMEZONE,
) -> RowValidation:
    """Validate one data row against the file's header mapping."""
    cells = _RowReader(raw, mapping)
    errors: list[ValidationError] = []
    data: dict[str, Any] = {}

    # -- symbol (required) --
    symbol = clean_text(cells.get("symbol"))
    if symbol is None:
        errors.append(ValidationError("symbol", "Symbol is required"))
    else:
        data["symbol"] = symbol.upper()
        data["group_symbol"] = data["symbol"]

    # -- side (required) --
    side_raw = cells.get("side")
    if not side_raw:
        errors.append(ValidationError("side", "Side/direction is required"))
    else:
        side = normalize_side(side_raw)
        if side is None:
            errors.append(ValidationError("side", f"Invalid side value: {side_raw}"))
        else:
            data["side"] = side.direction
            data["side_literal"] = side_raw.strip()

    # -- prices --
    entry_in = cells.number("entry_price")
    exit_in = cells.number("exit_price")
    fill = cells.number("fill_price")
    entry_price, exit_price = resolve_prices(entry_in, exit_in, fill)
    if (entry_price, exit_price) != (entry_in, exit_in):
        logger.debug(
            "[RowValidator] fill price %s reassigned (entry=%s, exit=%s)",
            fill, entry_price, exit_price,
        )

    if entry_price is None or entry_price <= 0:
        errors.append(ValidationError("entry_price", "Entry price must be a positive number"))
    else:
        data["entry_price"] = entry_price

    if exit_price is not None and exit_price > 0:
        data["exit_price"] = exit_price

    # -- datetimes --
    entry_dt = parse_datetime(cells.get("entry_datetime") or "", timezone_hint)
    if entry_dt is None:
        errors.append(ValidationError("entry_datetime", "Valid entry date/time is required"))
    else:
        data["entry_datetime_utc"] = entry_dt.iso_utc
        data["entry_datetime_kind"] = entry_dt.kind

    exit_raw = cells.get("exit_datetime")
    if exit_raw:
        exit_dt = parse_datetime(exit_raw, timezone_hint)
        if exit_dt is not None:
            data["exit_datetime_utc"] = exit_dt.iso_utc
            data["exit_datetime_kind"] = exit_dt.kind

    # -- optional numerics --
    quantity = cells.number("quantity")
    if quantity is not None:
        data["quantity"] = quantity

    profit_loss = cells.number("profit_loss")
    if profit_loss is not None:
        data["profit_loss"] = profit_loss

    commission = cells.number("commission")
    if commission is not None:
        data["commission"] = abs(commission)

    for name in _NON_NEGATIVE_FIELDS:
        value = cells.number(name)
        if value is not None and value >= 0:
            data[name] = value

    # -- optional text --
    strategy = clean_text(cells.get("strategy"))
    if strategy is not None:
        data["strategy"] = strategy
        data["group_strategy"] = strategy
    for name in ("broker_id", "account_id", "notes"):
        text = clean_text(cells.get(name))
        if text is not None:
            data[name] = text

    instrument_raw = cells.get("instrument_type")
    if instrument_raw:
        data["instrument_type"] = normalize_instrument_type(instrument_raw)

    return RowValidation(
        is_valid=not errors,
        errors=tuple(errors),
        data=ParsedRow(**data),
    )
