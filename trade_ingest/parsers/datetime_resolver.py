"""
Timestamp disambiguation for trade CSV cells.

Exports mix machine timestamps, machine log formats and spreadsheet dates,
sometimes inside one file. Resolution order (first match wins):

1. Unix time      - a bare positive number; > 1e12 means milliseconds
2. ISO-8601       - YYYY-MM-DD[THH:MM[:SS[.f]]][Z|±HH:MM]
3. Regional forms - MM/DD/YYYY, DD.MM.YYYY, YYYY-M-D, YYYY/M/D, MM-DD-YYYY (+ time)
4. Nothing else is accepted

Values without an explicit offset are read in the timezone hint, which is
"utc" unless the file says otherwise.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "utc"

# Second-resolution timestamps for plausible trade dates sit below 2e10,
# millisecond ones above 1e12.
MILLISECONDS_THRESHOLD = 1e12

KIND_UNIX_SECONDS = "unix_seconds"
KIND_UNIX_MILLISECONDS = "unix_milliseconds"
KIND_ISO_WITH_TZ = "iso_with_tz"
KIND_ISO_LOCAL = "iso_local"


@dataclass(frozen=True)
class ResolvedDateTime:
    instant: datetime  # tz-aware, UTC
    kind: str

    @property
    def iso_utc(self) -> str:
        return to_utc_iso(self.instant)


def to_utc_iso(instant: datetime) -> str:
    """Serialize as '2024-01-15T09:30:00.000Z'."""
    utc = instant.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# Timezone hints
# ---------------------------------------------------------------------------

_UTC_NAMES = {"utc", "z", "gmt", "zulu", "etc/utc", "etc/gmt"}

_OFFSET_RE = re.compile(r"^(?:utc|gmt)?\s*([+-])(\d{1,2})(?::?(\d{2}))?$", re.IGNORECASE)

_ABBREVIATIONS: dict[str, str] = {
    "et": "America/New_York",
    "est": "America/New_York",
    "edt": "America/New_York",
    "ct": "America/Chicago",
    "cst": "America/Chicago",
    "cdt": "America/Chicago",
    "mst": "America/Denver",
    "mdt": "America/Denver",
    "pt": "America/Los_Angeles",
    "pst": "America/Los_Angeles",
    "pdt": "America/Los_Angeles",
    "bst": "Europe/London",
    "cet": "Europe/Berlin",
    "cest": "Europe/Berlin",
    "jst": "Asia/Tokyo",
    "hkt": "Asia/Hong_Kong",
    "sgt": "Asia/Singapore",
    "ist": "Asia/Kolkata",
    "aest": "Australia/Sydney",
}


def _fixed_offset(sign: str, hours: str, minutes: Optional[str]) -> Optional[tzinfo]:
    h = int(hours)
    m = int(minutes or 0)
    if h > 23 or m > 59:
        return None
    delta = timedelta(hours=h, minutes=m)
    return timezone(-delta if sign == "-" else delta)


@lru_cache(maxsize=128)
def resolve_timezone(hint: Optional[str]) -> tzinfo:
    """Turn a free-form timezone hint into a tzinfo. Unknown hints mean UTC."""
    if not hint or not hint.strip():
        return timezone.utc
    text = hint.strip()
    lowered = text.lower()

    if lowered in _UTC_NAMES:
        return timezone.utc

    m = _OFFSET_RE.match(text)
    if m:
        tz = _fixed_offset(*m.groups())
        if tz is not None:
            return tz

    zone_name = _ABBREVIATIONS.get(lowered, text)
    try:
        return ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        logger.warning("[DateTime] Unrecognized timezone hint %r, assuming UTC", text)
        return timezone.utc


def _localize(naive: datetime, hint: Optional[str]) -> Optional[datetime]:
    """Read a naive value in the hinted zone and convert to UTC.

    None when the result falls outside the datetime range.
    """
    try:
        return naive.replace(tzinfo=resolve_timezone(hint)).astimezone(timezone.utc)
    except OverflowError:
        logger.debug("[DateTime] %s in %r is outside the representable range", naive, hint)
        return None


# ---------------------------------------------------------------------------
# Tier 1: Unix time
# ---------------------------------------------------------------------------

_NUMERIC_RE = re.compile(r"^\d+(?:\.\d+)?$")


def _parse_unix(text: str, _hint: Optional[str] = None) -> Optional[ResolvedDateTime]:
    if not _NUMERIC_RE.match(text):
        return None
    value = float(text)
    if value <= 0:
        return None
    is_ms = value > MILLISECONDS_THRESHOLD
    seconds = value / 1000.0 if is_ms else value
    try:
        instant = datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    return ResolvedDateTime(instant, KIND_UNIX_MILLISECONDS if is_ms else KIND_UNIX_SECONDS)


# ---------------------------------------------------------------------------
# ---------------------------------------------------------------------------
# Tier 2: ISO-8601
# ---------------------------------------------------------------------------

_ISO_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})"
    r"(?:[T ](?P<hour>\d{2}):(?P<minute>\d{2})"
    r"(?::(?P<second>\d{2})(?:[.,](?P<fraction>\d{1,9}))?)?"
    r"\s*(?P<tz>Z|[+-]\d{2}(?::?\d{2})?)?)?$",
    re.IGNORECASE,
)


def _iso_local_text(m: re.Match) -> str:
    """Rewrite the date/time part in the form fromisoformat accepts on 3.10."""
    text = m.group("date")
    if m.group("hour") is None:
        return text
    text += f"T{m.group('hour')}:{m.group('minute')}:{m.group('second') or '00'}"
    if m.group("fraction"):
        text += "." + m.group("fraction")[:6].ljust(6, "0")
    return text


def _iso_offset(tz_text: str) -> Optional[tzinfo]:
    if tz_text.upper() == "Z":
        return timezone.utc
    digits = tz_text[1:].replace(":", "")
    return _fixed_offset(tz_text[0], digits[:2], digits[2:4] or None)


def _parse_iso(text: str, hint: Optional[str]) -> Optional[ResolvedDateTime]:
    m = _ISO_RE.match(text)
    if not m:
        return None
    try:
        naive = datetime.fromisoformat(_iso_local_text(m))
    except ValueError:
        return None

    tz_text = m.group("tz")
    if not tz_text:
        instant = _localize(naive, hint)
        return ResolvedDateTime(instant, KIND_ISO_LOCAL) if instant else None

    offset = _iso_offset(tz_text)
    if offset is None:
        return None
    try:
        instant = naive.replace(tzinfo=offset).astimezone(timezone.utc)
    except OverflowError:
        logger.debug("[DateTime] %r is outside the representable range", text)
        return None
    return ResolvedDateTime(instant, KIND_ISO_WITH_TZ)


# ---------------------------------------------------------------------------
# Tier 3: regional layouts, one strptime date format per layout
# ---------------------------------------------------------------------------

_TIME = (
    r"(?:\s+(?P<hour>\d{1,2}):\d{2}"
    r"(?::(?P<second>\d{2})(?P<fraction>\.\d{1,6})?)?"
    r"(?:(?P<ampm_gap>\s*)(?P<ampm>[AaPp][Mm]))?)"
)

# (label, structure, strptime date format); the time part is optional only
# for the layouts that end in "?"
_REGIONAL_LAYOUTS: list[tuple[str, re.Pattern, str]] = [
    ("us_slash", re.compile(r"^\d{1,2}/\d{1,2}/\d{4}" + _TIME + r"?$"), "%m/%d/%Y"),
    ("eu_dot", re.compile(r"^\d{1,2}\.\d{1,2}\.\d{4}" + _TIME + r"?$"), "%d.%m.%Y"),
    ("ymd_dash", re.compile(r"^\d{4}-\d{1,2}-\d{1,2}" + _TIME + r"$"), "%Y-%m-%d"),
    ("ymd_slash", re.compile(r"^\d{4}/\d{1,2}/\d{1,2}" + _TIME + r"$"), "%Y/%m/%d"),
    ("us_dash", re.compile(r"^\d{1,2}-\d{1,2}-\d{4}" + _TIME + r"$"), "%m-%d-%Y"),
]


def _time_format(m: re.Match) -> str:
    """strptime format for whatever time part the layout matched."""
    if m.group("hour") is None:
        return ""
    ampm = m.group("ampm")
    fmt = " %I:%M" if ampm else " %H:%M"
    if m.group("second"):
        fmt += ":%S"
    if m.group("fraction"):
        fmt += ".%f"
    if ampm:
        fmt += " %p" if m.group("ampm_gap") else "%p"
    return fmt


def _parse_regional(text: str, hint: Optional[str]) -> Optional[ResolvedDateTime]:
    label = hint or DEFAULT_TIMEZONE
    for name, pattern, date_format in _REGIONAL_LAYOUTS:
        m = pattern.match(text)
        if not m:
            continue
        try:
            naive = datetime.strptime(text, date_format + _time_format(m))
        except ValueError:
            logger.debug("[DateTime] %r matched %s layout but is not a real date", text, name)
            continue
        instant = _localize(naive, hint)
        return ResolvedDateTime(instant, label) if instant else None
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

_TIERS: tuple[Callable[[str, Optional[str]], Optional[ResolvedDateTime]], ...] = (
    _parse_unix,
    _parse_iso,
    _parse_regional,
)


def parse_datetime(
    raw: Optional[str],
    timezone_hint: Optional[str] = DEFAULT_TIMEZONE,
) -> Optional[ResolvedDateTime]:
    """Resolve a timestamp cell to a UTC instant plus the format it was read as.

    Empty input returns None; whether that is an error is the caller's call.
    """
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    for tier in _TIERS:
        resolved = tier(text, timezone_hint)
        if resolved is not None:
            return resolved
    return None
