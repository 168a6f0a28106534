"""
Header → canonical field resolution for uploaded trade CSVs.

Broker exports disagree on punctuation and casing far more than on
vocabulary ("Entry Price", "entry_price", "ENTRY-PRICE"), so every header
and alias is normalized before comparison. Matching runs in two passes:

1. Exact   - normalized header equals a normalized alias
2. Fuzzy   - one contains the other; the longest matched text wins

Ties in either pass are broken by the table's explicit ``priority`` order,
never by dict iteration order.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Canonical fields
# ---------------------------------------------------------------------------

CANONICAL_FIELDS: tuple[str, ...] = (
    "symbol",
    "side",
    "entry_price",
    "exit_price",
    "fill_price",
    "entry_datetime",
    "exit_datetime",
    "quantity",
    "profit_loss",
    "commission",
    "stop_loss",
    "take_profit",
    "leverage",
    "margin",
    "strategy",
    "broker_id",
    "account_id",
    "instrument_type",
    "notes",
    "timezone",
)

_DEFAULT_ALIASES: dict[str, tuple[str, ...]] = {
    # Required
    "symbol": ("symbol", "instrument", "asset", "ticker", "pair", "market"),
    "side": (
        "side", "direction", "type", "action", "order_side", "orderside",
        "tradetype", "trade_type",
    ),
    "entry_price": (
        "entry_price", "entryprice", "open_price", "openprice", "buy_price",
        "buyprice", "short_price", "shortprice",
    ),
    "exit_price": (
        "exit_price", "exitprice", "closeprice", "close_price", "sellprice",
        "sell_price", "takeprofitprice", "take_profit_price", "tp_price",
        "buyback_price", "cover_price",
    ),
    "fill_price": (
        "fillprice", "fill_price", "filled_price", "filledprice",
        "execution_price", "exec_price", "limitprice", "limit_price",
        "stopprice", "stop_price", "price",
    ),
    "entry_datetime": (
        "entry_datetime", "entry_date", "entrydate", "entry_time", "entrytime",
        "open_date", "opendate", "open_time", "opentime", "date", "datetime",
        "timestamp", "time", "trade_date", "tradedate",
    ),
    # Optional
    "exit_datetime": (
        "exit_datetime", "exit_date", "exitdate", "exit_time", "exittime",
        "close_date", "closedate", "close_time", "closetime",
    ),
    "quantity": (
        "quantity", "qty", "size", "positionsize", "position_size", "contracts",
        "amount", "volume", "lots",
    ),
    "profit_loss": (
        "profit_loss", "profitloss", "pnl", "profit", "loss", "netprofit",
        "net_profit", "realized_pnl", "realizedpnl", "gain",
    ),
    "commission": (
        "commission", "fees", "fee", "tradecost", "trade_cost", "brokerfee",
        "broker_fee", "cost", "trading_fee",
    ),
    "stop_loss": ("stop_loss", "stoploss", "sl", "stop", "stop_price_sl"),
    "take_profit": ("take_profit", "takeprofit", "tp", "target", "target_price"),
    "leverage": ("leverage", "lev", "multiplier"),
    "margin": ("margin", "margin_used", "marginused", "collateral"),
    "strategy": (
        "strategy", "tag", "method", "system", "setup", "pattern",
        "strategy_name", "strategyname",
    ),
    "broker_id": ("broker_id", "brokerid", "broker", "exchange", "platform"),
    "account_id": (
        "account_id", "accountid", "account", "wallet", "portfolio",
        "subaccount", "sub_account",
    ),
    "instrument_type": (
        "instrument_type", "instrumenttype", "assettype", "asset_type", "market",
        "category", "asset_class", "assetclass",
    ),
    "notes": ("notes", "note", "comment", "comments", "description", "memo"),
    "timezone": ("timezone", "tz", "time_zone", "utc_offset", "offset"),
}

_STRIP_RE = re.compile(r"[\s\-_]+")


def normalize_header(name: str) -> str:
    """Lower-case and drop whitespace, hyphens and underscores."""
    return _STRIP_RE.sub("", name.lower())


# ---------------------------------------------------------------------------
# Alias table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AliasTable:
    """Immutable alias configuration shared by every parse.

    ``priority`` lists canonical fields from most to least preferred and is
    the only tie-break used by :func:`match_field`.
    """

    aliases: Mapping[str, tuple[str, ...]]
    priority: tuple[str, ...]
    _normalized: tuple[tuple[str, tuple[str, ...]], ...] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        missing = [f for f in self.priority if f not in self.aliases]
        if missing:
            raise ValueError(f"Priority lists fields without aliases: {missing}")
        unranked = [f for f in self.aliases if f not in self.priority]
        if unranked:
            raise ValueError(f"Fields missing from priority order: {unranked}")

        normalized = []
        for canonical in self.priority:
            spellings = []
            for alias in self.aliases[canonical]:
                n = normalize_header(alias)
                if n and n not in spellings:
                    spellings.append(n)
            normalized.append((canonical, tuple(spellings)))
        object.__setattr__(self, "_normalized", tuple(normalized))

    @property
    def fields(self) -> tuple[str, ...]:
        return self.priority

    def normalized_aliases(self) -> tuple[tuple[str, tuple[str, ...]], ...]:
        """(field, normalized spellings) pairs in priority order."""
        return self._normalized

    def with_overrides(
        self,
        extra: Mapping[str, Iterable[str]],
        replace: bool = False,
    ) -> "AliasTable":
        """Return a new table with additional (or replacement) spellings.

        Unknown fields are appended to the end of the priority order.
        """
        merged: dict[str, tuple[str, ...]] = {k: tuple(v) for k, v in self.aliases.items()}
        priority = list(self.priority)
        for canonical, spellings in extra.items():
            spellings = tuple(spellings)
            if canonical in merged and not replace:
                merged[canonical] = merged[canonical] + spellings
            else:
                merged[canonical] = spellings
            if canonical not in priority:
                priority.append(canonical)
        return AliasTable(aliases=merged, priority=tuple(priority))


DEFAULT_ALIAS_TABLE = AliasTable(aliases=_DEFAULT_ALIASES, priority=CANONICAL_FIELDS)


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

def match_field(header: str, table: AliasTable = DEFAULT_ALIAS_TABLE) -> Optional[str]:
    """Map a raw column header to a canonical field name, or None."""
    normalized = normalize_header(header)
    if not normalized:
        return None

    # Pass 1: exact
    for canonical, spellings in table.normalized_aliases():
        if normalized in spellings:
            return canonical

    # Pass 2: fuzzy, longest matched text wins, priority breaks ties
    best: Optional[str] = None
    best_len = 0
    for canonical, spellings in table.normalized_aliases():
        for alias in spellings:
            if alias in normalized:
                matched = len(alias)
            elif normalized in alias:
                matched = len(normalized)
            else:
                continue
            if matched > best_len:
                best, best_len = canonical, matched
    return best


def build_header_mapping(
    headers: Sequence[str],
    table: AliasTable = DEFAULT_ALIAS_TABLE,
) -> tuple[dict[str, str], dict[str, tuple[str, ...]]]:
    """Resolve every header once per file.

    Returns:
        (mapping of raw header -> canonical field for headers that matched,
         canonical field -> headers for fields claimed by more than one header)
    """
    mapping: dict[str, str] = {}
    claimed: dict[str, list[str]] = {}
    for header in headers:
        canonical = match_field(header, table)
        if canonical is None:
            continue
        mapping[header] = canonical
        claimed.setdefault(canonical, []).append(header)

    ambiguous = {f: tuple(hs) for f, hs in claimed.items() if len(hs) > 1}
    for canonical, hs in ambiguous.items():
        logger.warning(
            "[FieldAliases] %d headers map to '%s': %s (using '%s')",
            len(hs), canonical, list(hs), hs[0],
        )
    unmatched = [h for h in headers if h not in mapping]
    if unmatched:
        logger.debug("[FieldAliases] Unmatched headers: %s", unmatched)
    return mapping, ambiguous


def source_header(mapping: Mapping[str, str], canonical: str) -> Optional[str]:
    """First header (in column order) mapped to ``canonical``."""
    for header, mapped in mapping.items():
        if mapped == canonical:
            return header
    return None
