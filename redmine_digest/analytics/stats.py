"""Weekly report statistics over a processed ticket forest."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import pandas as pd

from redmine_digest.core.config import (
    CLOSED_STATUS_KEYWORDS,
    DUE_SOON_DAYS,
    UNKNOWN_AUTHOR_LABEL,
    UNSET_LABELS,
)
from redmine_digest.core.mappers import tickets_to_dataframe
from redmine_digest.core.models import Ticket
from redmine_digest.processing.hierarchy import flatten_forest


@dataclass(slots=True)
class CommentStats:
    total_comments: int = 0
    tickets_with_comments: int = 0
    by_author: dict[str, int] = field(default_factory=dict)


@dataclass(slots=True)
class WeeklyStats:
    total_tickets: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    by_assignee: dict[str, int] = field(default_factory=dict)
    by_tracker: dict[str, int] = field(default_factory=dict)
    by_priority: dict[str, int] = field(default_factory=dict)
    new_tickets: int = 0
    updated_tickets: int = 0
    closed_tickets: int = 0
    overdue: list[Ticket] = field(default_factory=list)
    due_soon: list[Ticket] = field(default_factory=list)
    comments: CommentStats = field(default_factory=CommentStats)


def is_closed_status(status: str | None) -> bool:
    text = (status or "").casefold()
    return any(keyword in text for keyword in CLOSED_STATUS_KEYWORDS)


def _utc(value: datetime) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def _counts(series: pd.Series) -> dict[str, int]:
    return {str(k): int(v) for k, v in series.value_counts(sort=False).items()}


def _comment_stats(tickets: Sequence[Ticket]) -> CommentStats:
    authors = [
        c.author or UNKNOWN_AUTHOR_LABEL for t in tickets for c in t.comments if c.has_text
    ]
    per_ticket = [sum(1 for c in t.comments if c.has_text) for t in tickets]
    return CommentStats(
        total_comments=len(authors),
        tickets_with_comments=sum(1 for n in per_ticket if n > 0),
        by_author=_counts(pd.Series(authors, dtype="object")) if authors else {},
    )


def calculate_stats(
    roots: Sequence[Ticket],
    start: datetime,
    end: datetime,
    now: datetime,
) -> WeeklyStats:
    """Summarize a forest for the (start, end) reporting window.

    New/updated counts use an exclusive window. Overdue and due-soon lists
    only consider open tickets; due-soon means due within ``DUE_SOON_DAYS``
    of ``now``.
    """
    tickets = flatten_forest(roots)
    stats = WeeklyStats(total_tickets=len(tickets))
    if not tickets:
        return stats

    df = tickets_to_dataframe(tickets)
    for col in ("status", "tracker", "priority"):
        df[col] = df[col].fillna("").astype(str).str.strip().replace("", UNSET_LABELS[col])
    stats.by_status = _counts(df["status"])
    stats.by_assignee = _counts(df["assignee"])
    stats.by_tracker = _counts(df["tracker"])
    stats.by_priority = _counts(df["priority"])

    start_ts = _utc(start)
    end_ts = _utc(end)
    stats.new_tickets = int(((df["created_on"] > start_ts) & (df["created_on"] < end_ts)).sum())
    stats.updated_tickets = int(((df["updated_on"] > start_ts) & (df["updated_on"] < end_ts)).sum())

    closed = df["status"].apply(is_closed_status)
    stats.closed_tickets = int(closed.sum())

    today = pd.Timestamp(now.date())
    soon = today + timedelta(days=DUE_SOON_DAYS)
    due = df["due_date"]
    overdue_mask = (due < today) & ~closed
    due_soon_mask = (due >= today) & (due < soon) & ~closed
    stats.overdue = [tickets[i] for i in df.index[overdue_mask.to_numpy()]]
    stats.due_soon = [tickets[i] for i in df.index[due_soon_mask.to_numpy()]]

    stats.comments = _comment_stats(tickets)
    return stats
