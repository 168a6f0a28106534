"""
Trade-history CSV parse pipeline.

Takes the raw text of an uploaded export and returns a CSVParseResult:

- blank lines are ignored
- the header row is resolved to canonical fields once per file
- each data line is split, validated and enriched independently
- lines whose cell count does not match the header are set aside as
  skipped framing errors, not counted as valid or invalid

Only a file without a header plus at least one data line fails outright
(CSVStructureError); every other problem is reported on its row.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .datetime_resolver import DEFAULT_TIMEZONE
from .derived_fields import apply_derived_fields
from .field_aliases import DEFAULT_ALIAS_TABLE, AliasTable, build_header_mapping, source_header
from .models import CSVParseResult, CSVStructureError, ParsedTradeRow, SkippedLine
from .row_validator import validate_row

logger = logging.getLogger(__name__)

_LINE_BREAK_RE = re.compile(r"\r?\n")


# ---------------------------------------------------------------------------
# Line / cell splitting
# ---------------------------------------------------------------------------

def split_lines(text: str) -> list[tuple[int, str]]:
    """Split text into (1-based physical line number, line) for non-blank lines."""
    if text.startswith("\ufeff"):
        text = text[1:]
    return [
        (i, line)
        for i, line in enumerate(_LINE_BREAK_RE.split(text), start=1)
        if line.strip()
    ]


def parse_csv_line(line: str) -> list[str]:
    """Split one CSV line into trimmed cells.

    A double quote toggles quoted mode, a doubled quote inside quotes is a
    literal quote, and commas only separate cells outside quotes.
    """
    cells: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1
    cells.append("".join(current).strip())
    return cells


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class TradeCSVParser:
    """
    Parse a trade-history CSV export into validated trade rows.

    Usage:
        parser = TradeCSVParser()
        result = parser.parse(csv_text)

    The parser holds only read-only configuration, so one instance can be
    shared across concurrent parses.
    """

    def __init__(
        self,
        alias_table: AliasTable = DEFAULT_ALIAS_TABLE,
        default_timezone: str = DEFAULT_TIMEZONE,
    ) -> None:
        self.alias_table = alias_table
        self.default_timezone = default_timezone or DEFAULT_TIMEZONE

    def parse(self, text: str, timezone_hint: Optional[str] = None) -> CSVParseResult:
        lines = split_lines(text or "")
        if len(lines) < 2:
            raise CSVStructureError()

        _, header_line = lines[0]
        headers = parse_csv_line(header_line)
        mapping, ambiguous = build_header_mapping(headers, self.alias_table)
        tz_header = source_header(mapping, "timezone")
        repeated = sorted({h for h in headers if headers.count(h) > 1})
        if repeated:
            logger.warning(
                "[CSVPipeline] Repeated column names %s; raw rows keep the first occurrence",
                repeated,
            )

        logger.info(
            "[CSVPipeline] %d columns, %d mapped: %s",
            len(headers), len(mapping), mapping,
        )

        current_tz = timezone_hint or self.default_timezone
        rows: list[ParsedTradeRow] = []
        skipped: list[SkippedLine] = []
        valid_count = 0
        invalid_count = 0

        for row_number, (line_number, line) in enumerate(lines[1:], start=1):
            values = parse_csv_line(line)
            if len(values) != len(headers):
                skipped.append(SkippedLine(line_number, len(headers), len(values)))
                continue

            raw: dict[str, str] = {}
            for header, value in zip(headers, values):
                raw.setdefault(header, value)
            if tz_header is not None and raw.get(tz_header):
                current_tz = raw[tz_header]

            checked = validate_row(raw, mapping, current_tz)
            data = checked.data
            if checked.is_valid:
                data = apply_derived_fields(data)
                valid_count += 1
            else:
                invalid_count += 1

            rows.append(ParsedTradeRow(
                row_number=row_number,
                line_number=line_number,
                is_valid=checked.is_valid,
                errors=checked.errors,
                data=data,
                raw=raw,
            ))

        if skipped:
            logger.warning(
                "[CSVPipeline] Skipped %d line(s) with wrong cell count (expected %d): lines %s",
                len(skipped), len(headers), [s.line_number for s in skipped],
            )
        logger.info(
            "[CSVPipeline] Parsed %d rows (%d valid, %d invalid, %d skipped)",
            len(rows), valid_count, invalid_count, len(skipped),
        )

        return CSVParseResult(
            headers=tuple(headers),
            field_mappings=mapping,
            rows=tuple(rows),
            valid_count=valid_count,
            invalid_count=invalid_count,
            detected_timezone=current_tz,
            skipped_lines=tuple(skipped),
            ambiguous_fields=ambiguous,
        )

    def with_aliases(self, extra: dict[str, list[str]]) -> "TradeCSVParser":
        """Copy of this parser with extra header spellings."""
        return TradeCSVParser(
            alias_table=self.alias_table.with_overrides(extra),
            default_timezone=self.default_timezone,
        )


def parse_csv(
    text: str,
    timezone_hint: Optional[str] = None,
    alias_table: AliasTable = DEFAULT_ALIAS_TABLE,
) -> CSVParseResult:
    """Parse CSV text with a one-off parser."""
    return TradeCSVParser(alias_table=alias_table).parse(text, timezone_hint=timezone_hint)
