"""Parse a trade-history CSV from the command line and report what was understood.

Usage:
    python -m trade_ingest.run_parser path/to/trades.csv
    python -m trade_ingest.run_parser path/to/trades.csv --timezone America/New_York --json

Exit codes: 0 all rows valid, 1 some rows invalid, 2 unreadable / structural failure.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from trade_ingest.parsers import CSVParseResult, CSVStructureError, TradeCSVParser
from trade_ingest.parsers.export import to_trade_records
from trade_ingest.settings import load_settings

logger = logging.getLogger(__name__)


def _fmt(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:,.2f}"


def print_summary(result: CSVParseResult, path: Path) -> None:
    print("=" * 70)
    print(f"  Trade CSV Parser")
    print(f"  File: {path.name}")
    print("=" * 70)

    print(f"\n{'COLUMN MAPPING':=^70}")
    for header in result.headers:
        print(f"  {header:<28} -> {result.field_mappings.get(header, '(unmapped)')}")
    for field_name, headers in result.ambiguous_fields.items():
        print(f"  ! {field_name} claimed by {', '.join(headers)} (using '{headers[0]}')")

    print(f"\n{'RESULTS':=^70}")
    print(f"  Valid rows:        {result.valid_count}")
    print(f"  Invalid rows:      {result.invalid_count}")
    print(f"  Skipped lines:     {result.skipped_count}")
    print(f"  Timezone hint:     {result.detected_timezone}")

    if result.valid_rows:
        print(f"\n{'VALID TRADES':=^70}")
        print(f"  {'Row':>4} {'Symbol':<10} {'Side':<6} {'Entry':>12} {'Exit':>12} {'P/L':>12}")
        print(f"  {'-' * 60}")
        for row in result.valid_rows:
            d = row.data
            print(
                f"  {row.row_number:>4} {d.symbol or '':<10} {d.side.value if d.side else '':<6} "
                f"{_fmt(d.entry_price):>12} {_fmt(d.exit_price):>12} {_fmt(d.profit_loss):>12}"
            )

    if result.invalid_rows:
        print(f"\n{'INVALID ROWS':=^70}")
        for row in result.invalid_rows:
            print(f"  Row {row.row_number} (line {row.line_number}):")
            for err in row.errors:
                print(f"    {err.field:<16} {err.message}")

    if result.skipped_lines:
        print(f"\n{'SKIPPED LINES':=^70}")
        for s in result.skipped_lines:
            print(f"  Line {s.line_number}: {s.actual_cells} cells, expected {s.expected_cells}")

    print(f"\n{'=' * 70}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = load_settings()
    ap = argparse.ArgumentParser(description="Parse a trade-history CSV export.")
    ap.add_argument("csv_path", type=Path, help="CSV file to parse")
    ap.add_argument("--timezone", default=None, help="Timezone for timestamps without an offset")
    ap.add_argument("--json", action="store_true", help="Print the full result as JSON")
    ap.add_argument("--records", action="store_true", help="Print insert-ready trade records as JSON")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    if not args.csv_path.exists():
        print(f"ERROR: File not found: {args.csv_path}", file=sys.stderr)
        return 2

    text = args.csv_path.read_text(encoding="utf-8-sig", errors="replace")
    parser = TradeCSVParser(default_timezone=settings.default_timezone)
    try:
        result = parser.parse(text, timezone_hint=args.timezone)
    except CSVStructureError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return 2

    if args.records:
        print(json.dumps(to_trade_records(result), indent=2))
    elif args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_summary(result, args.csv_path)

    return 1 if result.invalid_count else 0


if __name__ == "__main__":
    sys.exit(main())
