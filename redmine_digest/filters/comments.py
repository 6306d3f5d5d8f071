"""Per-ticket journal (comment) selection by author, date, and mode."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime

import pytz

from redmine_digest.core.config import ConfigurationError
from redmine_digest.core.models import Comment
from redmine_digest.core.timestamps import parse_date, parse_timestamp

PASSTHROUGH_MODES = frozenset({"", "all"})


def parse_comments_limit(mode: str | None) -> int:
    """Return K for an ``n:K`` mode, 0 for ``""``/``all``/``last``.

    Raises
    ------
    ConfigurationError
        For unknown modes or a non-positive / non-numeric K.
    """
    text = (mode or "").strip()
    if text in PASSTHROUGH_MODES or text == "last":
        return 0
    if not text.startswith("n:"):
        raise ConfigurationError(f"Invalid comment mode: {mode!r} (all, last, n:N)")
    raw_count = text[2:]
    try:
        count = int(raw_count)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid comment count: {raw_count!r} (positive integer)") from exc
    if count <= 0:
        raise ConfigurationError(f"Invalid comment count: {raw_count!r} (positive integer)")
    return count


def resolve_comments_since(
    value: str | date | None, window_start: datetime | None = None
) -> datetime | None:
    """Resolve a comments-since setting into an aware lower bound.

    ``auto`` and ``start`` mean the start of the run window (None when the run
    has no window); ``YYYY-MM-DD`` or a ``date`` is midnight UTC of that day.
    """
    if isinstance(value, date):
        day = parse_date(value)
        return pytz.UTC.localize(datetime(day.year, day.month, day.day))
    text = (value or "").strip()
    if not text:
        return None
    if text in {"auto", "start"}:
        return window_start
    day = parse_date(text)
    if day is None:
        raise ConfigurationError(f"Invalid comments-since date: {value!r} (auto, start, YYYY-MM-DD)")
    return pytz.UTC.localize(datetime(day.year, day.month, day.day))


class CommentSelector:
    def __init__(self, mode: str = "", since: datetime | None = None, author: str | None = None):
        self.mode = (mode or "").strip()
        self.limit = parse_comments_limit(self.mode)
        self.since = parse_timestamp(since) if since is not None else None
        self.author = author or None

    def filter(self, comments: Sequence[Comment]) -> list[Comment]:
        """Return the selected comments as a new list (input is left untouched)."""
        selected = self._by_author(comments)
        selected = self._by_date(selected)
        return self._by_mode(selected)

    def _by_author(self, comments: Sequence[Comment]) -> list[Comment]:
        if self.author is None:
            return list(comments)
        return [c for c in comments if c.author == self.author]

    def _by_date(self, comments: list[Comment]) -> list[Comment]:
        if self.since is None:
            return comments
        out = []
        for c in comments:
            created = c.created_at
            if created is not None and created >= self.since:
                out.append(c)
        return out

    def _by_mode(self, comments: list[Comment]) -> list[Comment]:
        if self.mode in PASSTHROUGH_MODES:
            return comments
        with_text = [c for c in comments if c.has_text]
        if self.mode == "last":
            return with_text[-1:]
        return with_text[-self.limit :]


def select_comments(selector: CommentSelector | None, comments: Sequence[Comment]) -> list[Comment]:
    if selector is None:
        return list(comments)
    return selector.filter(comments)
