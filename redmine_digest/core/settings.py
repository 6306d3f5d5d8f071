"""Run settings: defaults, optional YAML overrides, and spec-string parsing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from datetime import date
from pathlib import Path

import yaml

from .config import (
    DATE_FIELDS,
    DEFAULT_DATE_FIELD,
    DEFAULT_OUTPUT_MODE,
    DEFAULT_WEEK_START,
    SUMMARY_TAG,
    TIMEZONE,
    ConfigurationError,
)
from .models import TagRule

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "redmine_digest.yaml"


@dataclass(slots=True)
class DigestSettings:
    mode: str = DEFAULT_OUTPUT_MODE
    tags: str = ""
    include_comments: bool = False
    tags_order: str = "newest"
    summary_tag: str = SUMMARY_TAG
    title_patterns: list[str] = field(default_factory=list)
    prefer_comments: bool = False

    week: str = ""
    week_start: str = DEFAULT_WEEK_START
    timezone: str = TIMEZONE
    date_field: str = DEFAULT_DATE_FIELD
    filter_by_window: bool = False

    comments: str = ""
    comments_since: str = ""
    comments_by: str = ""

    sort: str = ""
    group_by: str = ""

    def __post_init__(self):
        if self.date_field not in DATE_FIELDS:
            raise ConfigurationError(
                f"Unsupported date field: {self.date_field!r} ({', '.join(DATE_FIELDS)})"
            )

    @property
    def wants_comment_filter(self) -> bool:
        return bool(self.comments or self.comments_since or self.comments_by)


def parse_tag_rules(text: str, comments_max: int = 0) -> list[TagRule]:
    """Parse ``"Summary:3,Progress,Issues:2"`` into tag rules.

    A tag without its own limit uses ``comments_max``; with both set the
    smaller one wins. Zero means unbounded.
    """
    rules: list[TagRule] = []
    for part in (text or "").split(","):
        part = part.strip()
        if not part:
            continue
        if ":" not in part:
            rules.append(TagRule(name=part, limit=max(comments_max, 0)))
            continue
        name, raw_limit = (p.strip() for p in part.split(":", 1))
        try:
            tag_limit = int(raw_limit)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid limit for tag {name!r}: {raw_limit!r}") from exc
        if tag_limit < 0:
            raise ConfigurationError(f"Limit for tag {name!r} must be 0 or greater: {tag_limit}")
        if comments_max > 0 and tag_limit > 0:
            limit = min(tag_limit, comments_max)
        elif comments_max > 0:
            limit = comments_max
        else:
            limit = tag_limit
        rules.append(TagRule(name=name, limit=limit))
    return rules


def load_settings(path: str | Path | None = None, **overrides) -> DigestSettings:
    """Load settings from YAML (if present) and apply keyword overrides.

    Unknown YAML keys are ignored with a warning; a missing file yields the
    defaults.
    """
    yaml_path = Path(path) if path else Path.cwd() / SETTINGS_FILENAME
    data: dict = {}
    if yaml_path.exists():
        try:
            data = yaml.safe_load(yaml_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Cannot parse settings file {yaml_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Settings file {yaml_path} must contain a mapping")
    elif path:
        raise ConfigurationError(f"Settings file not found: {yaml_path}")

    known = {f.name for f in fields(DigestSettings)}
    values = {}
    for key, value in {**data, **overrides}.items():
        normalized = str(key).replace("-", "_")
        if normalized not in known:
            logger.warning("Ignoring unknown setting %r", key)
            continue
        if value is None:
            continue
        # YAML reads unquoted 2025-01-08 as a date
        if isinstance(value, date):
            value = value.isoformat()
        values[normalized] = value
    if isinstance(values.get("title_patterns"), str):
        values["title_patterns"] = [values["title_patterns"]]
    if isinstance(values.get("tags"), list):
        values["tags"] = ",".join(str(t) for t in values["tags"])
    return DigestSettings(**values)
