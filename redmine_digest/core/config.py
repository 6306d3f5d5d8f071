"""Central configuration, constants, and shared label definitions."""

from __future__ import annotations

from collections.abc import Sequence


class ConfigurationError(ValueError):
    """Raised when a run is misconfigured (bad mode, week spec, timezone...)."""


# =============================================================================
# Calendar Settings
# =============================================================================
TIMEZONE = "Asia/Tokyo"
DEFAULT_WEEK_START = "mon"

# Accepted week-start tokens mapped to datetime.weekday() numbers
WEEK_START_TOKENS: dict[str, int] = {
    "mon": 0,
    "monday": 0,
    "sun": 6,
    "sunday": 6,
}

# Fields a run window can be applied to
DATE_FIELDS: Sequence[str] = (
    "updated_on",
    "created_on",
    "start_date",
    "due_date",
)
DEFAULT_DATE_FIELD = "updated_on"

# =============================================================================
# Extraction Settings
# =============================================================================
SUMMARY_TAG = "要約"

OUTPUT_MODES: Sequence[str] = ("summary", "full", "tags")
DEFAULT_OUTPUT_MODE = "summary"

# Presentation order aliases for extracted tag values
TAG_ORDER_ALIASES: dict[str, str] = {
    "newest": "newest",
    "newest-first": "newest",
    "oldest": "oldest",
    "oldest-first": "oldest",
}

# =============================================================================
# Grouping Labels
# Used when the grouped field is missing or blank.
# =============================================================================
UNASSIGNED_LABEL = "Unassigned"
UNSET_LABELS: dict[str, str] = {
    "status": "No status",
    "tracker": "No tracker",
    "project": "No project",
    "priority": "No priority",
}
UNKNOWN_AUTHOR_LABEL = "Unknown"

# =============================================================================
# Priority Configuration
# Redmine default enumeration; used only when a priority carries no id.
# =============================================================================
PRIORITY_RANKS: dict[str, int] = {
    "Low": 1,
    "Normal": 2,
    "High": 3,
    "Urgent": 4,
    "Immediate": 5,
}

# =============================================================================
# Statistics
# =============================================================================
# Status names containing any of these (case-insensitive) count as closed
CLOSED_STATUS_KEYWORDS: frozenset[str] = frozenset(
    {
        "完了",
        "終了",
        "クローズ",
        "closed",
        "resolved",
        "done",
    }
)
DUE_SOON_DAYS: int = 7

# Parallel annotation tuning
ANNOTATION_MAX_WORKERS = 8
ANNOTATION_MIN_PARALLEL = 64  # smaller batches are annotated sequentially
