"""Fill in values that were not exported but follow from the rest of the row."""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from .models import ParsedRow, Side

logger = logging.getLogger(__name__)


def derive_profit_loss(
    entry_price: float,
    exit_price: float,
    quantity: float,
    side: Side,
    commission: Optional[float] = None,
) -> float:
    """(exit - entry) * quantity * direction - commission."""
    return (exit_price - entry_price) * quantity * side.sign - (commission or 0.0)


def apply_derived_fields(row: ParsedRow) -> ParsedRow:
    """Return ``row`` with profit/loss filled in when it can be derived.

    Never removes or overwrites an exported value.
    """
    if row.profit_loss is not None:
        return row
    if row.side is None or not row.entry_price or not row.exit_price or not row.quantity:
        return row

    pnl = derive_profit_loss(
        row.entry_price, row.exit_price, row.quantity, row.side, row.commission,
    )
    logger.debug("[DerivedFields] %s: derived P/L %.4f", row.symbol, pnl)
    return dataclasses.replace(row, profit_loss=pnl, profit_loss_derived=True)
