from .models import (
    CSVParseResult,
    CSVStructureError,
    InstrumentType,
    ParsedRow,
    ParsedTradeRow,
    Side,
    SideValue,
    SkippedLine,
    ValidationError,
)
from .field_aliases import AliasTable, DEFAULT_ALIAS_TABLE, build_header_mapping, match_field
from .normalizers import normalize_instrument_type, normalize_side, parse_numeric
from .datetime_resolver import ResolvedDateTime, parse_datetime, resolve_timezone
from .row_validator import validate_row
from .derived_fields import apply_derived_fields, derive_profit_loss
from .csv_pipeline import TradeCSVParser, parse_csv, parse_csv_line
from .export import batched, deduplicate, to_dataframe, to_trade_records
from .sample_data import generate_sample_csv
