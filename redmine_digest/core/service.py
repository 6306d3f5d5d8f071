"""DigestService: wires mapping, filtering, extraction, and ordering into one run."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from redmine_digest.analytics.stats import WeeklyStats, calculate_stats
from redmine_digest.filters.comments import CommentSelector, parse_comments_limit, resolve_comments_since
from redmine_digest.filters.period import PeriodCalculator
from redmine_digest.processing.ordering import arrange, parse_group_key, parse_sort_spec
from redmine_digest.processing.processor import TicketProcessor
from redmine_digest.processing.tags import TagExtractor

from .mappers import filter_by_range, map_ticket
from .models import DateRange, Ticket
from .settings import DigestSettings, parse_tag_rules

ProgressCallback = Callable[[str, int | None, int | None], None]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DigestResult:
    roots: list[Ticket]
    window: DateRange | None
    stats: WeeklyStats


class DigestService:
    """Build every stage from ``settings`` up front so misconfiguration fails fast."""

    def __init__(self, settings: DigestSettings | None = None):
        self.settings = settings or DigestSettings()
        s = self.settings
        self.calculator = PeriodCalculator(s.week_start, s.timezone)
        comments_max = parse_comments_limit(s.comments)
        self.extractor = TagExtractor(
            parse_tag_rules(s.tags, comments_max),
            include_comments=s.include_comments,
            order=s.tags_order,
        )
        self.processor = TicketProcessor(
            s.title_patterns,
            self.extractor,
            s.mode,
            prefer_comments=s.prefer_comments,
            summary_tag=s.summary_tag,
        )
        self.sort = parse_sort_spec(s.sort) if s.sort else None
        self.group = parse_group_key(s.group_by) if s.group_by else None
        if s.week:
            # Week specs other than last/this do not depend on the clock
            self.calculator.compute_range(s.week, datetime(2000, 1, 1))
        # Validate the comment settings before any data arrives
        self._selector_for(None)

    def window(self, now: datetime) -> DateRange | None:
        if not self.settings.week:
            return None
        return self.calculator.date_range(self.settings.week, now, self.settings.date_field)

    def _selector_for(self, window: DateRange | None) -> CommentSelector | None:
        s = self.settings
        if not s.wants_comment_filter:
            return None
        since = resolve_comments_since(s.comments_since, window.start if window else None)
        return CommentSelector(s.comments, since=since, author=s.comments_by or None)

    def run(
        self,
        issues: Sequence[dict[str, Any] | Ticket],
        now: datetime,
        *,
        progress: ProgressCallback | None = None,
    ) -> DigestResult:
        tickets = [i if isinstance(i, Ticket) else map_ticket(i) for i in issues]
        window = self.window(now)
        if window is not None:
            logger.info(
                "Reporting window: %s %s - %s", window.field, window.start.isoformat(), window.end.isoformat()
            )
            if self.settings.filter_by_window:
                before = len(tickets)
                tickets = filter_by_range(tickets, window)
                logger.debug("Window filter kept %d of %d ticket(s)", len(tickets), before)

        selector = self._selector_for(window)
        if selector is not None:
            if progress:
                progress("Filtering comments", None, None)
            for ticket in tickets:
                ticket.comments = selector.filter(ticket.comments)

        if progress:
            progress("Processing tickets", None, len(tickets))
        roots = self.processor.process(tickets)

        if self.sort is not None or self.group is not None:
            if progress:
                progress("Sorting and grouping tickets", None, None)
            roots = arrange(roots, self.sort, self.group)

        if window is not None:
            start, end = window.start, window.end
        else:
            start, end = now - timedelta(days=7), now
        stats = calculate_stats(roots, start, end, now)
        logger.info("Prepared %d root ticket(s) from %d ticket(s)", len(roots), len(tickets))
        return DigestResult(roots=roots, window=window, stats=stats)
