"""Domain data models for Redmine tickets, journals, tag rules, and date windows."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from .timestamps import parse_timestamp


@dataclass(slots=True)
class Label:
    name: str
    id: int | None = None


@dataclass(slots=True)
class Comment:
    id: int | None
    author: str | None
    notes: str = ""
    created_on: str | None = None

    @property
    def created_at(self) -> datetime | None:
        """Parsed ``created_on`` (UTC), or None when it cannot be parsed."""
        return parse_timestamp(self.created_on)

    @property
    def has_text(self) -> bool:
        return bool(self.notes)


@dataclass(slots=True, eq=False)
class Ticket:
    id: int
    subject: str = ""
    description: str = ""
    parent_id: int | None = None
    status: Label | None = None
    tracker: Label | None = None
    priority: Label | None = None
    project: Label | None = None
    assignee: str | None = None
    start_date: date | None = None
    due_date: date | None = None
    created_on: datetime | None = None
    updated_on: datetime | None = None
    comments: list[Comment] = field(default_factory=list)

    # Derived fields (populated by the processing stages)
    cleaned_subject: str = ""
    summary: str | None = None
    extracted_tags: dict[str, list[str]] = field(default_factory=dict)
    children: list[Ticket] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"Ticket(id={self.id!r}, parent_id={self.parent_id!r}, children={len(self.children)})"


@dataclass(frozen=True, slots=True)
class TagRule:
    name: str
    limit: int = 0  # 0 = unbounded


@dataclass(frozen=True, slots=True)
class DateRange:
    field: str
    start: datetime
    end: datetime

    def contains(self, value: date | datetime | None) -> bool:
        """Inclusive membership test; plain dates compare by calendar day."""
        if value is None:
            return False
        if isinstance(value, datetime):
            return self.start <= value <= self.end
        return self.start.date() <= value <= self.end.date()
