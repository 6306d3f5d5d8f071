"""Sorting and grouping of processed tickets.

Sort keys and group keys are closed enumerations; each key resolves to one
value-extraction function. Sorting is stable and always puts tickets that
lack the sort value last, whatever the direction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import pandas as pd

from redmine_digest.core.config import UNASSIGNED_LABEL, UNSET_LABELS, ConfigurationError
from redmine_digest.core.mappers import priority_rank
from redmine_digest.core.models import Label, Ticket

from .hierarchy import flatten_forest

logger = logging.getLogger(__name__)


class SortKey(str, Enum):
    UPDATED_ON = "updated_on"
    CREATED_ON = "created_on"
    DUE_DATE = "due_date"
    START_DATE = "start_date"
    PRIORITY = "priority"
    ID = "id"


class GroupKey(str, Enum):
    ASSIGNEE = "assignee"
    STATUS = "status"
    TRACKER = "tracker"
    PROJECT = "project"
    PRIORITY = "priority"


# Intrinsic direction: "most relevant first"
DEFAULT_DESCENDING: dict[SortKey, bool] = {
    SortKey.UPDATED_ON: True,
    SortKey.CREATED_ON: True,
    SortKey.DUE_DATE: False,
    SortKey.START_DATE: False,
    SortKey.PRIORITY: True,
    SortKey.ID: False,
}


@dataclass(frozen=True, slots=True)
class SortSpec:
    key: SortKey
    descending: bool

    @classmethod
    def for_key(cls, key: SortKey | str, descending: bool | None = None) -> SortSpec:
        sort_key = _parse_enum(SortKey, key, "sort field")
        if descending is None:
            descending = DEFAULT_DESCENDING[sort_key]
        return cls(key=sort_key, descending=descending)


@dataclass(slots=True)
class GroupedTickets:
    keys: list[str] = field(default_factory=list)
    groups: dict[str, list[Ticket]] = field(default_factory=dict)


def _parse_enum(enum_cls, value, what: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip())
    except ValueError as exc:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(f"Unsupported {what}: {value!r} ({allowed})") from exc


def parse_sort_spec(text: str) -> SortSpec:
    """Parse ``field``, ``field:asc|desc`` or ``field_asc|field_desc``."""
    raw = (text or "").strip()
    order = ""
    name = raw
    if ":" in raw:
        name, order = (part.strip() for part in raw.split(":", 1))
    elif raw.endswith("_asc"):
        name, order = raw[: -len("_asc")], "asc"
    elif raw.endswith("_desc"):
        name, order = raw[: -len("_desc")], "desc"
    order = order.lower()
    if order not in {"", "asc", "desc"}:
        raise ConfigurationError(f"Unsupported sort order: {order!r} (asc or desc)")
    return SortSpec.for_key(name, None if not order else order == "desc")


def parse_group_key(text: str) -> GroupKey:
    return _parse_enum(GroupKey, text, "group field")


# ------------------ Value Extraction ------------------
_SORT_VALUES: dict[SortKey, Callable[[Ticket], Any]] = {
    SortKey.UPDATED_ON: lambda t: t.updated_on,
    SortKey.CREATED_ON: lambda t: t.created_on,
    SortKey.DUE_DATE: lambda t: t.due_date,
    SortKey.START_DATE: lambda t: t.start_date,
    SortKey.PRIORITY: lambda t: priority_rank(t.priority),
    SortKey.ID: lambda t: t.id,
}


def _sort_series(tickets: Sequence[Ticket], key: SortKey) -> pd.Series:
    values = [_SORT_VALUES[key](t) for t in tickets]
    if key in (SortKey.UPDATED_ON, SortKey.CREATED_ON):
        return pd.Series(pd.to_datetime(values, utc=True, errors="coerce"))
    if key in (SortKey.DUE_DATE, SortKey.START_DATE):
        return pd.Series(pd.to_datetime(values, errors="coerce"))
    return pd.Series(values, dtype="float64")


def sort_tickets(tickets: Sequence[Ticket], spec: SortSpec | None) -> list[Ticket]:
    """Stable sort returning a new list; missing values always go last."""
    items = list(tickets)
    if spec is None or len(items) < 2:
        return items
    keys = _sort_series(items, spec.key)
    order = keys.sort_values(ascending=not spec.descending, kind="stable", na_position="last").index
    return [items[i] for i in order]


def _label_name(label: Label | None) -> str:
    return (label.name if label else "").strip()


_GROUP_VALUES: dict[GroupKey, Callable[[Ticket], str]] = {
    GroupKey.ASSIGNEE: lambda t: (t.assignee or "").strip(),
    GroupKey.STATUS: lambda t: _label_name(t.status),
    GroupKey.TRACKER: lambda t: _label_name(t.tracker),
    GroupKey.PROJECT: lambda t: _label_name(t.project),
    GroupKey.PRIORITY: lambda t: _label_name(t.priority),
}


def group_label(ticket: Ticket, key: GroupKey) -> str:
    name = _GROUP_VALUES[key](ticket)
    if name:
        return name
    if key is GroupKey.ASSIGNEE:
        return UNASSIGNED_LABEL
    return UNSET_LABELS[key.value]


def group_tickets(tickets: Sequence[Ticket], key: GroupKey) -> GroupedTickets:
    """Bucket tickets by ``key``; buckets keep first-seen order."""
    grouped = GroupedTickets()
    for ticket in tickets:
        label = group_label(ticket, key)
        if label not in grouped.groups:
            grouped.keys.append(label)
            grouped.groups[label] = []
        grouped.groups[label].append(ticket)
    return grouped


def flatten_groups(grouped: GroupedTickets) -> list[Ticket]:
    out: list[Ticket] = []
    for label in grouped.keys:
        out.extend(grouped.groups[label])
    return out


def arrange(
    roots: Sequence[Ticket],
    sort: SortSpec | None = None,
    group: GroupKey | None = None,
) -> list[Ticket]:
    """Apply sorting and/or grouping to a forest.

    With neither requested the forest is returned as-is. Otherwise the
    result is a flat list: sorted globally, grouped, re-sorted within each
    bucket, with every ticket's children cleared.
    """
    if sort is None and group is None:
        return list(roots)
    flat = sort_tickets(flatten_forest(roots), sort)
    if group is not None:
        grouped = group_tickets(flat, group)
        if sort is not None:
            for label in grouped.keys:
                grouped.groups[label] = sort_tickets(grouped.groups[label], sort)
        logger.debug("Grouped %d ticket(s) into %d bucket(s) by %s", len(flat), len(grouped.keys), group.value)
        flat = flatten_groups(grouped)
    for ticket in flat:
        ticket.children = []
    return flat
