from concurrent.futures import ThreadPoolExecutor

import pytest

from redmine_digest.core.config import ConfigurationError
from redmine_digest.core.models import Comment, TagRule
from redmine_digest.processing.tags import TagExtractor, extract_summary, find_tag_values


def _comments(*notes):
    return [Comment(id=i, author="Alice", notes=n) for i, n in enumerate(notes, start=1)]


def test_find_tag_values_left_to_right():
    text = "[P]one[/P] noise [P] two [/P][P]three[/P]"
    assert find_tag_values(text, "P") == ["one", "two", "three"]


def test_find_tag_values_unterminated_and_missing():
    assert find_tag_values("[P]open only", "P") == []
    assert find_tag_values("close only[/P]", "P") == []
    assert find_tag_values("[P]done[/P] [P]dangling", "P") == ["done"]
    assert find_tag_values("", "P") == []
    assert find_tag_values(None, "P") == []


def test_find_tag_values_skips_blank_values():
    assert find_tag_values("[P]  [/P][P]x[/P]", "P") == ["x"]


def test_comment_before_description_newest_first():
    extractor = TagExtractor([TagRule("P", 0)], include_comments=True)
    result = extractor.extract("[P]d[/P]", _comments("[P]c[/P]"))
    assert result == {"P": ["c", "d"]}


def test_limit_keeps_most_recent():
    extractor = TagExtractor([TagRule("P", 1)], include_comments=True)
    assert extractor.extract("[P]d[/P]", _comments("[P]c[/P]")) == {"P": ["c"]}


def test_oldest_first_reverses_presentation():
    extractor = TagExtractor([TagRule("P", 0)], include_comments=True, order="oldest-first")
    assert extractor.extract("[P]d[/P]", _comments("[P]c[/P]")) == {"P": ["d", "c"]}


def test_oldest_first_reverses_after_truncation():
    extractor = TagExtractor([TagRule("P", 2)], include_comments=True, order="oldest")
    comments = _comments("[P]c1[/P]", "[P]c2[/P]", "[P]c3[/P]")
    assert extractor.extract("[P]d[/P]", comments) == {"P": ["c2", "c3"]}


def test_multiple_occurrences_per_block_are_reversed():
    extractor = TagExtractor([TagRule("P", 0)], include_comments=True)
    comments = _comments("[P]a1[/P] [P]a2[/P]", "", "[P]b1[/P][P]b2[/P]")
    result = extractor.extract("[P]d1[/P][P]d2[/P]", comments)
    assert result == {"P": ["b2", "b1", "a2", "a1", "d2", "d1"]}


def test_limit_spans_sources():
    extractor = TagExtractor([TagRule("P", 3)], include_comments=True)
    comments = _comments("[P]a1[/P] [P]a2[/P]", "[P]b1[/P]")
    result = extractor.extract("[P]d[/P]", comments)
    assert result == {"P": ["b1", "a2", "a1"]}


def test_comments_ignored_when_not_included():
    extractor = TagExtractor([TagRule("P", 0)])
    assert extractor.extract("[P]d[/P]", _comments("[P]c[/P]")) == {"P": ["d"]}
    assert extractor.extract("nothing", _comments("[P]c[/P]")) == {}


def test_per_tag_limits_and_omitted_tags():
    rules = [TagRule("Progress", 2), TagRule("Issue", 1), TagRule("Risk", 0)]
    extractor = TagExtractor(rules, include_comments=True)
    comments = _comments(
        "[Progress]p1[/Progress]\n[Issue]i1[/Issue]",
        "[Progress]p2[/Progress]\n[Issue]i2[/Issue]",
    )
    result = extractor.extract("[Progress]pd[/Progress]\n[Issue]id[/Issue]", comments)
    assert result == {"Progress": ["p2", "p1"], "Issue": ["i2"]}
    assert list(result) == ["Progress", "Issue"]


def test_extraction_does_not_touch_comments():
    comments = _comments("[P]c[/P]")
    extractor = TagExtractor([TagRule("P", 1)], include_comments=True)
    extractor.extract("[P]d[/P]", comments)
    assert [c.notes for c in comments] == ["[P]c[/P]"]


def test_parallel_extraction_matches_sequential():
    extractor = TagExtractor([TagRule("P", 2)], include_comments=True)
    inputs = [(f"[P]d{i}[/P]", _comments(f"[P]c{i}a[/P]", f"[P]c{i}b[/P]")) for i in range(50)]
    sequential = [extractor.extract(d, c) for d, c in inputs]
    with ThreadPoolExecutor(max_workers=4) as pool:
        parallel = list(pool.map(lambda args: extractor.extract(*args), inputs))
    assert parallel == sequential


def test_invalid_configuration():
    with pytest.raises(ConfigurationError):
        TagExtractor([TagRule("P", 0)], order="random")
    with pytest.raises(ConfigurationError):
        TagExtractor([TagRule("P", -1)])


def test_extract_summary_first_value():
    text = "[Summary]  Implemented login  [/Summary]\n\nDetails"
    assert extract_summary(text, tag="Summary") == "Implemented login"
    assert extract_summary("[Summary]unterminated", tag="Summary") == ""
    assert extract_summary("[要約] 実装完了 [/要約]") == "実装完了"
    assert extract_summary(text) == ""
    assert extract_summary("[Goal]x[/Goal]", tag="Goal") == "x"
