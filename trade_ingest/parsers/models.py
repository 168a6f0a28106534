"""
Data model for trade-history CSV ingestion.

A parse produces one CSVParseResult per input blob:
- headers / field_mappings describe how the header row was understood
- rows holds one ParsedTradeRow per well-framed data line, in file order
- skipped_lines records lines dropped because their cell count did not
  match the header (they are not validation failures)

All records are frozen once the pipeline returns.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Optional


STRUCTURAL_ERROR_MESSAGE = "CSV must have a header row and at least one data row"


class CSVStructureError(ValueError):
    """Raised when the input cannot be treated as a trade CSV at all."""

    def __init__(self, message: str = STRUCTURAL_ERROR_MESSAGE) -> None:
        super().__init__(message)
        self.message = message


class Side(str, Enum):
    LONG = "long"
    SHORT = "short"

    @property
    def sign(self) -> int:
        """+1 for long exposure, -1 for short exposure."""
        return 1 if self is Side.LONG else -1


class InstrumentType(str, Enum):
    STOCK = "stock"
    CRYPTO = "crypto"
    FOREX = "forex"
    FUTURES = "futures"
    OPTIONS = "options"
    OTHER = "other"


@dataclass(frozen=True)
class SideValue:
    """A normalized side cell.

    ``order_term`` is True when the source used order vocabulary
    (buy/sell) instead of position vocabulary (long/short).
    """

    direction: Side
    order_term: bool = False


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True)
class ParsedRow:
    """Canonical trade record. Fields stay None when absent or invalid."""

    symbol: Optional[str] = None
    side: Optional[Side] = None
    side_literal: Optional[str] = None
    entry_price: Optional[float] = None
    exit_price: Optional[float] = None
    entry_datetime_utc: Optional[str] = None
    entry_datetime_kind: Optional[str] = None
    exit_datetime_utc: Optional[str] = None
    exit_datetime_kind: Optional[str] = None
    quantity: Optional[float] = None
    profit_loss: Optional[float] = None
    profit_loss_derived: bool = False
    commission: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    leverage: Optional[float] = None
    margin: Optional[float] = None
    strategy: Optional[str] = None
    broker_id: Optional[str] = None
    account_id: Optional[str] = None
    notes: Optional[str] = None
    instrument_type: Optional[InstrumentType] = None
    group_symbol: Optional[str] = None
    group_strategy: Optional[str] = None

    def to_dict(self, include_empty: bool = False) -> dict[str, Any]:
        """Serialize with enum values flattened to their strings."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            if value is None and not include_empty:
                continue
            out[f.name] = value
        return out


@dataclass(frozen=True)
class ParsedTradeRow:
    row_number: int
    line_number: int
    is_valid: bool
    errors: tuple[ValidationError, ...]
    data: ParsedRow
    raw: dict[str, str]

    def error_for(self, field_name: str) -> Optional[ValidationError]:
        for err in self.errors:
            if err.field == field_name:
                return err
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "rowNumber": self.row_number,
            "lineNumber": self.line_number,
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "data": self.data.to_dict(),
            "raw": dict(self.raw),
        }


@dataclass(frozen=True)
class SkippedLine:
    """A data line whose cell count did not match the header row."""

    line_number: int
    expected_cells: int
    actual_cells: int


@dataclass(frozen=True)
class CSVParseResult:
    headers: tuple[str, ...]
    field_mappings: dict[str, str]
    rows: tuple[ParsedTradeRow, ...]
    valid_count: int
    invalid_count: int
    detected_timezone: str
    skipped_lines: tuple[SkippedLine, ...] = ()
    ambiguous_fields: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped_lines)

    @property
    def valid_rows(self) -> list[ParsedTradeRow]:
        return [r for r in self.rows if r.is_valid]

    @property
    def invalid_rows(self) -> list[ParsedTradeRow]:
        return [r for r in self.rows if not r.is_valid]

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form using the importer's camelCase keys."""
        return {
            "headers": list(self.headers),
            "fieldMappings": dict(self.field_mappings),
            "rows": [r.to_dict() for r in self.rows],
            "validCount": self.valid_count,
            "invalidCount": self.invalid_count,
            "detectedTimezone": self.detected_timezone,
            "skippedLines": [asdict(s) for s in self.skipped_lines],
            "ambiguousFields": {k: list(v) for k, v in self.ambiguous_fields.items()},
        }
