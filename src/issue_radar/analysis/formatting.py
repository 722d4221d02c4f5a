import math
from typing import Sequence
from ..models.issue import Issue

ISSUE_SEPARATOR = "\n---\n"


def estimate_tokens(text: str) -> int:
    """Rough token count: four characters per token."""
    return math.ceil(len(text) / 4)


def format_issue(index: int, issue: Issue, body_preview_chars: int = 300) -> str:
    if issue.body:
        body = issue.body[:body_preview_chars]
        if len(issue.body) > body_preview_chars:
            body += "..."
    else:
        body = "No description"

    return (
        f"## Issue {index}: {issue.title}\n"
        f"URL: {issue.html_url}\n"
        f"Created: {issue.created_at.date().isoformat()}\n"
        f"Description: {body}\n"
    )


def format_issues_for_llm(issues: Sequence[Issue], body_preview_chars: int = 300) -> str:
    """Render issues as one corpus, entries separated by ISSUE_SEPARATOR."""
    return ISSUE_SEPARATOR.join(
        format_issue(i, issue, body_preview_chars) for i, issue in enumerate(issues, 1)
    )
