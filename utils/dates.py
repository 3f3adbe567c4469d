"""Flexible parsing of admin-entered expiry timestamps.

Parsers are tried in order and the first one that returns a datetime wins.
Every parser returns an aware UTC datetime, or None when the input is not in
its format. When all of them decline, `parse_flexible_datetime` returns the
INVALID sentinel so callers can tell "bad input" apart from "no input".
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Callable, Optional

INVALID = object()

_DAY_MONTH_YEAR_RE = re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{4})(?:\s+(\d{1,2}):(\d{2}))?$', re.ASCII)
_DATE_ONLY_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$', re.ASCII)


def _local_to_utc(value: datetime) -> datetime:
    # Naive datetimes are interpreted in the server's local time zone.
    return value.astimezone(timezone.utc)


def _parse_iso(s: str) -> Optional[datetime]:
    """ISO-8601 and browser datetime-local values."""
    if not s.isascii():
        return None
    if _DATE_ONLY_RE.match(s):
        try:
            d = date.fromisoformat(s)
        except ValueError:
            return None
        # Date-only forms are midnight UTC, like a browser Date.
        return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)

    candidate = s[:-1] + '+00:00' if s.endswith(('Z', 'z')) else s
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return _local_to_utc(parsed)
    return parsed.astimezone(timezone.utc)


def _parse_day_month_year(s: str) -> Optional[datetime]:
    """D/M/YYYY with an optional 24-hour H:MM, in server local time."""
    m = _DAY_MONTH_YEAR_RE.match(s)
    if not m:
        return None
    day, month, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
    hour = int(m.group(4)) if m.group(4) is not None else 0
    minute = int(m.group(5)) if m.group(5) is not None else 0
    try:
        parsed = datetime(year, month, day, hour, minute, 0)
    except ValueError:
        return None
    return _local_to_utc(parsed)


PARSERS: tuple[Callable[[str], Optional[datetime]], ...] = (
    _parse_iso,
    _parse_day_month_year,
)


def parse_flexible_datetime(raw):
    """Parse a free-form timestamp string.

    Returns an aware UTC datetime, None for missing/blank input, or INVALID.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return _local_to_utc(raw) if raw.tzinfo is None else raw.astimezone(timezone.utc)

    s = str(raw).strip()
    if not s:
        return None

    for parser in PARSERS:
        parsed = parser(s)
        if parsed is not None:
            return parsed
    return INVALID
