"""Week window computation for scoping a weekly report run."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta

import pytz

from redmine_digest.core.config import DEFAULT_WEEK_START, TIMEZONE, WEEK_START_TOKENS, ConfigurationError
from redmine_digest.core.models import DateRange

_WEEK_SPEC = re.compile(r"^(\d{4})-(\d{1,2})$")
_DAY_END = time(23, 59, 59)


class PeriodCalculator:
    """Turn ``last`` / ``this`` / ``YYYY-W`` into an inclusive seven-day window.

    Parameters
    ----------
    week_start : str
        ``mon`` or ``sun``.
    timezone : str
        IANA timezone name the window boundaries are expressed in.
    """

    def __init__(self, week_start: str = DEFAULT_WEEK_START, timezone: str = TIMEZONE):
        token = str(week_start or "").strip().lower()
        if token not in WEEK_START_TOKENS:
            raise ConfigurationError(f"Invalid week start: {week_start!r} (expected mon or sun)")
        try:
            self._tz = pytz.timezone(timezone)
        except pytz.UnknownTimeZoneError as exc:
            raise ConfigurationError(f"Unknown timezone: {timezone!r}") from exc
        self.week_start = WEEK_START_TOKENS[token]

    def compute_range(self, spec: str, now: datetime) -> tuple[datetime, datetime]:
        """Return the (start, end) instants for ``spec`` relative to ``now``."""
        if spec == "this":
            first_day = self._week_start_on_or_before(self._local_date(now))
        elif spec == "last":
            first_day = self._week_start_on_or_before(self._local_date(now)) - timedelta(days=7)
        else:
            first_day = self._numbered_week_start(spec)
        return self._window(first_day)

    def date_range(self, spec: str, now: datetime, field: str) -> DateRange:
        start, end = self.compute_range(spec, now)
        return DateRange(field=field, start=start, end=end)

    # ------------------ Internal Helpers ------------------
    def _local_date(self, now: datetime) -> date:
        if now.tzinfo is None:
            return now.date()
        return now.astimezone(self._tz).date()

    def _week_start_on_or_before(self, day: date) -> date:
        return day - timedelta(days=(day.weekday() - self.week_start) % 7)

    def _numbered_week_start(self, spec: str) -> date:
        match = _WEEK_SPEC.match(str(spec or "").strip())
        if not match:
            raise ConfigurationError(f"Invalid week spec: {spec!r} (expected last, this or YYYY-W)")
        year, week = int(match.group(1)), int(match.group(2))
        if week < 1 or year < 1:
            raise ConfigurationError(f"Invalid week number in {spec!r}")
        jan1 = date(year, 1, 1)
        days_to_start = (self.week_start - jan1.weekday()) % 7
        try:
            first = jan1 + timedelta(days=days_to_start)
            # First window must hold at least four January days
            if days_to_start > 3:
                first -= timedelta(days=7)
            return first + timedelta(days=(week - 1) * 7)
        except OverflowError as exc:
            raise ConfigurationError(f"Week spec out of range: {spec!r}") from exc

    def _window(self, first_day: date) -> tuple[datetime, datetime]:
        last_day = first_day + timedelta(days=6)
        start = self._tz.localize(datetime.combine(first_day, time.min))
        end = self._tz.localize(datetime.combine(last_day, _DAY_END))
        return start, end
