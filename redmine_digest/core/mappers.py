"""Mapping raw Redmine issue JSON into Ticket instances."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pandas as pd

from .config import PRIORITY_RANKS, UNASSIGNED_LABEL
from .models import Comment, DateRange, Label, Ticket
from .timestamps import parse_date, parse_timestamp


def _map_label(value: Any) -> Label | None:
    if not isinstance(value, dict):
        return None
    name = value.get("name")
    if name is None:
        return None
    return Label(name=str(name), id=value.get("id"))


def normalize_priority_name(priority: str | None) -> str | None:
    if priority is None:
        return None
    cleaned = str(priority).strip()
    return cleaned or None


def priority_rank(label: Label | None) -> int | None:
    """Numeric urgency of a priority label; larger means more urgent."""
    if label is None:
        return None
    if label.id is not None:
        return int(label.id)
    name = normalize_priority_name(label.name)
    if name is None:
        return None
    for known, rank in PRIORITY_RANKS.items():
        if name.casefold() == known.casefold():
            return rank
    return None


def map_comment(raw: dict[str, Any]) -> Comment:
    return Comment(
        id=raw.get("id"),
        author=(raw.get("user") or {}).get("name"),
        notes=raw.get("notes") or "",
        created_on=raw.get("created_on"),
    )


def map_ticket(raw: dict[str, Any]) -> Ticket:
    parent = raw.get("parent") or {}
    assignee = _map_label(raw.get("assigned_to"))
    comments_raw = raw.get("journals", []) or []
    return Ticket(
        id=int(raw["id"]),
        parent_id=parent.get("id") if isinstance(parent, dict) else None,
        subject=raw.get("subject") or "",
        description=raw.get("description") or "",
        status=_map_label(raw.get("status")),
        tracker=_map_label(raw.get("tracker")),
        priority=_map_label(raw.get("priority")),
        project=_map_label(raw.get("project")),
        assignee=assignee.name if assignee else None,
        start_date=parse_date(raw.get("start_date")),
        due_date=parse_date(raw.get("due_date")),
        created_on=parse_timestamp(raw.get("created_on")),
        updated_on=parse_timestamp(raw.get("updated_on")),
        comments=[map_comment(c) for c in comments_raw],
    )


def filter_by_range(tickets: Iterable[Ticket], date_range: DateRange) -> list[Ticket]:
    """Keep tickets whose ``date_range.field`` value falls inside the window."""
    return [t for t in tickets if date_range.contains(getattr(t, date_range.field, None))]


def tickets_to_dataframe(tickets: Iterable[Ticket]) -> pd.DataFrame:
    rows = []
    for t in tickets:
        rows.append(
            {
                "id": t.id,
                "parent_id": t.parent_id,
                "subject": t.subject,
                "cleaned_subject": t.cleaned_subject,
                "status": t.status.name if t.status else None,
                "tracker": t.tracker.name if t.tracker else None,
                "priority": t.priority.name if t.priority else None,
                "priority_value": priority_rank(t.priority),
                "project": t.project.name if t.project else None,
                "assignee": t.assignee or UNASSIGNED_LABEL,
                "start_date": t.start_date,
                "due_date": t.due_date,
                "created_on": t.created_on,
                "updated_on": t.updated_on,
                "comments_count": sum(1 for c in t.comments if c.has_text),
                "summary": t.summary,
            }
        )
    df = pd.DataFrame(rows)
    if df.empty:
        return df
    for col in ("created_on", "updated_on"):
        df[col] = pd.to_datetime(df[col], utc=True, errors="coerce")
    for col in ("start_date", "due_date"):
        df[col] = pd.to_datetime(df[col], errors="coerce")
    return df
