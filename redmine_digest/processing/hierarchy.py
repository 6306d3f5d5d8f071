"""Parent/child forest reconstruction from flat parent references."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from redmine_digest.core.models import Ticket

logger = logging.getLogger(__name__)


def build_forest(tickets: Sequence[Ticket]) -> list[Ticket]:
    """Link ``tickets`` into a forest and return its roots in input order.

    A ticket whose parent is not part of the batch, or that names itself as
    its parent, becomes a (pseudo-)root. Children lists of the batch are
    reset first, so rebuilding the same tickets gives the same shape.
    """
    by_id: dict[int, Ticket] = {}
    for ticket in tickets:
        ticket.children = []
        by_id[ticket.id] = ticket

    roots: list[Ticket] = []
    orphans = 0
    for ticket in tickets:
        parent_id = ticket.parent_id
        if parent_id is None:
            roots.append(ticket)
            continue
        parent = by_id.get(parent_id)
        if parent is not None and parent_id != ticket.id:
            parent.children.append(ticket)
        else:
            orphans += 1
            roots.append(ticket)
    if orphans:
        logger.debug("Promoted %d ticket(s) with missing parents to roots", orphans)
    return roots


def flatten_forest(roots: Iterable[Ticket]) -> list[Ticket]:
    """Pre-order flattening: each ticket followed by its descendants."""
    out: list[Ticket] = []
    stack = list(reversed(list(roots)))
    while stack:
        ticket = stack.pop()
        out.append(ticket)
        stack.extend(reversed(ticket.children))
    return out
