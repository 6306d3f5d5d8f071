from datetime import datetime

import pytest
import pytz

from redmine_digest.core.config import ConfigurationError
from redmine_digest.core.service import DigestService
from redmine_digest.core.settings import DigestSettings

TOKYO = pytz.timezone("Asia/Tokyo")
NOW = TOKYO.localize(datetime(2025, 1, 15, 12, 0))


def _sample_issues():
    return [
        {
            "id": 3,
            "subject": "Later work",
            "status": {"id": 1, "name": "New"},
            "updated_on": "2025-01-20T00:00:00Z",
        },
        {
            "id": 1,
            "subject": "[WIP] Parent",
            "description": "[要約]parent sum[/要約]",
            "status": {"id": 1, "name": "New"},
            "priority": {"id": 3, "name": "High"},
            "assigned_to": {"id": 7, "name": "Alice"},
            "updated_on": "2025-01-08T00:00:00Z",
            "journals": [
                {"id": 10, "user": {"name": "Alice"}, "notes": "[Progress]p-old[/Progress]",
                 "created_on": "2025-01-03T00:00:00Z"},
                {"id": 11, "user": {"name": "Bob"}, "notes": "[Progress]p-new[/Progress]",
                 "created_on": "2025-01-07T00:00:00Z"},
            ],
        },
        {
            "id": 2,
            "subject": "Child (draft)",
            "parent": {"id": 1},
            "status": {"id": 5, "name": "Closed"},
            "updated_on": "2025-01-10T00:00:00Z",
        },
    ]


def test_weekly_run_filters_extracts_and_builds_forest():
    settings = DigestSettings(
        mode="tags",
        tags="Progress,要約",
        include_comments=True,
        title_patterns=[r"^\[.*?\]\s*", r"\s*\(.*?\)$"],
        week="last",
        filter_by_window=True,
        comments_since="auto",
    )
    calls = []
    result = DigestService(settings).run(
        _sample_issues(), NOW, progress=lambda *args: calls.append(args[0])
    )

    assert result.window.start == TOKYO.localize(datetime(2025, 1, 6))
    assert result.window.end == TOKYO.localize(datetime(2025, 1, 12, 23, 59, 59))
    assert [t.id for t in result.roots] == [1]
    parent = result.roots[0]
    assert parent.cleaned_subject == "Parent"
    assert [c.cleaned_subject for c in parent.children] == ["Child"]
    assert parent.extracted_tags == {"Progress": ["p-new"], "要約": ["parent sum"]}
    assert parent.summary == "parent sum"
    assert [c.author for c in parent.comments] == ["Bob"]

    assert result.stats.total_tickets == 2
    assert result.stats.updated_tickets == 2
    assert result.stats.closed_tickets == 1
    assert calls == ["Filtering comments", "Processing tickets"]


def test_run_without_window_sorts_and_groups():
    settings = DigestSettings(sort="id", group_by="status")
    result = DigestService(settings).run(_sample_issues(), NOW)
    assert result.window is None
    assert [t.id for t in result.roots] == [1, 3, 2]
    assert all(t.children == [] for t in result.roots)
    assert result.stats.total_tickets == 3


def test_summary_mode_keeps_forest_unfiltered():
    result = DigestService(DigestSettings(week="2025-2")).run(_sample_issues(), NOW)
    assert [t.id for t in result.roots] == [3, 1]
    assert result.roots[1].summary == "parent sum"
    assert result.roots[1].extracted_tags == {}
    assert len(result.roots[1].comments) == 2


def test_comment_mode_caps_tag_limits():
    settings = DigestSettings(mode="tags", tags="Progress:5", include_comments=True, comments="n:1")
    result = DigestService(settings).run(_sample_issues(), NOW)
    parent = next(t for t in result.roots if t.id == 1)
    assert parent.extracted_tags == {"Progress": ["p-new"]}


@pytest.mark.parametrize(
    "overrides",
    [
        {"sort": "subject"},
        {"group_by": "author"},
        {"week": "2025-0"},
        {"week": "next"},
        {"comments": "n:0"},
        {"comments_since": "yesterday"},
        {"week_start": "wed"},
        {"timezone": "Mars/Olympus"},
        {"mode": "verbose"},
        {"tags_order": "random"},
    ],
)
def test_misconfiguration_fails_before_run(overrides):
    with pytest.raises(ConfigurationError):
        DigestService(DigestSettings(**overrides))
