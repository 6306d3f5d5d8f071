"""TicketProcessor: title cleaning, summary/tag annotation, and forest building."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from redmine_digest.core.config import (
    ANNOTATION_MAX_WORKERS,
    ANNOTATION_MIN_PARALLEL,
    DEFAULT_OUTPUT_MODE,
    OUTPUT_MODES,
    SUMMARY_TAG,
    ConfigurationError,
)
from redmine_digest.core.models import Ticket

from .hierarchy import build_forest
from .tags import TagExtractor, extract_summary

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Annotation:
    cleaned_subject: str
    summary: str | None
    extracted_tags: dict[str, list[str]]


def compile_patterns(patterns: Sequence[str]) -> list[re.Pattern]:
    """Compile title-cleaning regexes, skipping empty or invalid ones."""
    compiled: list[re.Pattern] = []
    for pattern in patterns:
        if not pattern:
            continue
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            logger.warning("Skipping invalid title pattern %r: %s", pattern, exc)
    return compiled


class TicketProcessor:
    def __init__(
        self,
        cleaning_patterns: Sequence[str] = (),
        extractor: TagExtractor | None = None,
        mode: str = DEFAULT_OUTPUT_MODE,
        *,
        prefer_comments: bool = False,
        summary_tag: str = SUMMARY_TAG,
        max_workers: int = ANNOTATION_MAX_WORKERS,
    ):
        if mode not in OUTPUT_MODES:
            raise ConfigurationError(f"Invalid output mode: {mode!r} ({', '.join(OUTPUT_MODES)})")
        self.patterns = compile_patterns(cleaning_patterns)
        self.extractor = extractor or TagExtractor([])
        self.mode = mode
        self.prefer_comments = prefer_comments
        self.summary_tag = summary_tag
        self.max_workers = max_workers

    def clean_title(self, subject: str) -> str:
        result = subject or ""
        for pattern in self.patterns:
            result = pattern.sub("", result)
        return result

    def content_source(self, ticket: Ticket) -> str:
        if self.prefer_comments:
            for comment in reversed(ticket.comments):
                if comment.has_text:
                    return comment.notes
        return ticket.description

    def annotate(self, ticket: Ticket) -> Annotation:
        """Compute derived fields for one ticket without touching it."""
        source = self.content_source(ticket)
        tags: dict[str, list[str]] = {}
        if self.mode == "tags":
            tags = self.extractor.extract(source, ticket.comments)
            values = tags.get(self.summary_tag)
            summary = values[0] if values else None
        else:
            summary = extract_summary(source, self.summary_tag)
        return Annotation(
            cleaned_subject=self.clean_title(ticket.subject),
            summary=summary,
            extracted_tags=tags,
        )

    def annotate_all(self, tickets: Sequence[Ticket]) -> None:
        """Annotate every ticket in place (threaded for large batches)."""
        if len(tickets) < ANNOTATION_MIN_PARALLEL or self.max_workers <= 1:
            annotations = [self.annotate(t) for t in tickets]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                annotations = list(pool.map(self.annotate, tickets))
        for ticket, annotation in zip(tickets, annotations):
            ticket.cleaned_subject = annotation.cleaned_subject
            ticket.summary = annotation.summary
            ticket.extracted_tags = annotation.extracted_tags
        logger.debug("Annotated %d ticket(s) in %s mode", len(tickets), self.mode)

    def process(self, tickets: Sequence[Ticket]) -> list[Ticket]:
        self.annotate_all(tickets)
        return build_forest(tickets)
