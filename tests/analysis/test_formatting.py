from datetime import datetime, timezone
from helpers import make_issue
from issue_radar.analysis.formatting import (
    ISSUE_SEPARATOR,
    estimate_tokens,
    format_issue,
    format_issues_for_llm,
)


def test_estimate_tokens_rounds_up():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2


def test_format_issue_layout():
    issue = make_issue(7, title="Crash on save", body="Steps to reproduce",
                       created_at=datetime(2025, 3, 9, 8, 30, tzinfo=timezone.utc))

    text = format_issue(1, issue)

    assert text == (
        "## Issue 1: Crash on save\n"
        "URL: https://github.com/acme/widgets/issues/7\n"
        "Created: 2025-03-09\n"
        "Description: Steps to reproduce\n"
    )


def test_long_body_is_truncated():
    issue = make_issue(1, body="b" * 500)
    text = format_issue(1, issue, body_preview_chars=300)
    assert "Description: " + "b" * 300 + "...\n" in text


def test_missing_body():
    assert "Description: No description" in format_issue(1, make_issue(1, body=None))
    assert "Description: No description" in format_issue(1, make_issue(1, body=""))


def test_issues_are_numbered_and_separated():
    corpus = format_issues_for_llm([make_issue(10), make_issue(11)])
    entries = corpus.split(ISSUE_SEPARATOR)
    assert len(entries) == 2
    assert entries[0].startswith("## Issue 1: Issue #10")
    assert entries[1].startswith("## Issue 2: Issue #11")
