"""Literal ``[Name]...[/Name]`` tag extraction from descriptions and journals.

Values are collected in recency order: journals newest first, and within a
single text block the physically later occurrence first. The description is
the oldest source. Per-tag limits keep the most recent values; the
``oldest`` presentation order only reverses what was kept.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from redmine_digest.core.config import SUMMARY_TAG, TAG_ORDER_ALIASES, ConfigurationError
from redmine_digest.core.models import Comment, TagRule

logger = logging.getLogger(__name__)


def find_tag_values(text: str | None, name: str) -> list[str]:
    """All trimmed, non-empty ``[name]...[/name]`` values in ``text``, left to right."""
    if not text or not name:
        return []
    open_marker = f"[{name}]"
    close_marker = f"[/{name}]"
    values: list[str] = []
    pos = 0
    while True:
        start = text.find(open_marker, pos)
        if start < 0:
            break
        content_start = start + len(open_marker)
        end = text.find(close_marker, content_start)
        if end < 0:
            break
        value = text[content_start:end].strip()
        if value:
            values.append(value)
        pos = end + len(close_marker)
    return values


def extract_summary(text: str | None, tag: str = SUMMARY_TAG) -> str:
    """First value of ``tag`` in ``text``, or an empty string."""
    values = find_tag_values(text, tag)
    return values[0] if values else ""


class TagExtractor:
    def __init__(
        self,
        rules: Sequence[TagRule],
        include_comments: bool = False,
        order: str = "newest",
    ):
        normalized = TAG_ORDER_ALIASES.get(str(order or "").strip().lower())
        if normalized is None:
            raise ConfigurationError(f"Invalid tag order: {order!r} (newest or oldest)")
        seen: set[str] = set()
        kept: list[TagRule] = []
        for rule in rules:
            if rule.limit < 0:
                raise ConfigurationError(f"Tag {rule.name!r} limit must be 0 or greater: {rule.limit}")
            if rule.name in seen:
                continue
            seen.add(rule.name)
            kept.append(rule)
        self.rules: tuple[TagRule, ...] = tuple(kept)
        self.include_comments = include_comments
        self.oldest_first = normalized == "oldest"

    def extract(self, description: str | None, comments: Sequence[Comment] = ()) -> dict[str, list[str]]:
        """Extract every configured tag; tags without values are omitted."""
        result: dict[str, list[str]] = {}
        for rule in self.rules:
            values = self._collect(rule, description, comments)
            if not values:
                continue
            if self.oldest_first:
                values.reverse()
            result[rule.name] = values
        if result:
            logger.debug(
                "Extracted tags %s from %d comment(s)",
                {k: len(v) for k, v in result.items()},
                len(comments) if self.include_comments else 0,
            )
        return result

    def _collect(self, rule: TagRule, description: str | None, comments: Sequence[Comment]) -> list[str]:
        values: list[str] = []

        def full() -> bool:
            return rule.limit > 0 and len(values) >= rule.limit

        if self.include_comments:
            for comment in reversed(comments):
                if full():
                    break
                values.extend(reversed(find_tag_values(comment.notes, rule.name)))
        if not full():
            values.extend(reversed(find_tag_values(description, rule.name)))
        if rule.limit > 0:
            del values[rule.limit :]
        return values
