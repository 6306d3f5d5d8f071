"""Best-effort timestamp parsing helpers shared by the mappers and filters."""

from __future__ import annotations

import re
from datetime import date, datetime

import pandas as pd
import pytz

# pandas maps "now" and "today" to the current instant even with an explicit format
_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


def _looks_iso(value) -> bool:
    return not isinstance(value, str) or bool(_ISO_DATE_PREFIX.match(value.strip()))


def parse_timestamp(value) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Returns None when the input is empty or not ISO-8601 (relative words such
    as "now" are rejected); naive inputs are assumed to be UTC.
    """
    if value is None or value == "":
        return None
    if not _looks_iso(value):
        return None
    if isinstance(value, datetime):
        ts = pd.Timestamp(value)
    else:
        ts = pd.to_datetime(value, utc=True, format="ISO8601", errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is None:
        ts = ts.tz_localize(pytz.UTC)
    return ts.tz_convert(pytz.UTC).to_pydatetime()


def parse_date(value) -> date | None:
    """Parse a ``YYYY-MM-DD`` date; None for empty or malformed values."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not _looks_iso(value):
        return None
    ts = pd.to_datetime(value, format="%Y-%m-%d", errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.date()

