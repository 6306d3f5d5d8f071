"""Ticket processing stages: tag extraction, forest building, ordering."""

from redmine_digest.processing.hierarchy import build_forest, flatten_forest
from redmine_digest.processing.ordering import (
    GroupKey,
    SortKey,
    SortSpec,
    arrange,
    group_tickets,
    parse_group_key,
    parse_sort_spec,
    sort_tickets,
)
from redmine_digest.processing.processor import TicketProcessor
from redmine_digest.processing.tags import TagExtractor, extract_summary, find_tag_values

__all__ = [
    "GroupKey",
    "SortKey",
    "SortSpec",
    "TagExtractor",
    "TicketProcessor",
    "arrange",
    "build_forest",
    "extract_summary",
    "find_tag_values",
    "flatten_forest",
    "group_tickets",
    "parse_group_key",
    "parse_sort_spec",
    "sort_tickets",
]
