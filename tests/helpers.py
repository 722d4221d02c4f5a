"""Test helpers: issue factories, a scripted page fetcher and a controllable clock."""
from collections import defaultdict, deque
from datetime import datetime, timedelta, timezone

from issue_radar.ingestion.base import IssuePage, PageFetcher
from issue_radar.models.issue import Issue


T0 = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_issue(issue_id, title=None, body="Something is broken", created_at=None) -> Issue:
    return Issue(
        id=issue_id,
        title=title or f"Issue #{issue_id}",
        body=body,
        html_url=f"https://github.com/acme/widgets/issues/{issue_id}",
        created_at=created_at or T0 - timedelta(minutes=int(issue_id) if str(issue_id).isdigit() else 0),
    )


def make_issues(start: int, count: int) -> list:
    return [make_issue(i) for i in range(start, start + count)]


class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class ScriptedFetcher(PageFetcher):
    """
    Returns canned responses per cursor, in order.
    A response is an IssuePage or an exception instance to raise.
    """

    def __init__(self, script=None):
        self.responses = defaultdict(deque)
        self.calls = []
        for cursor, responses in (script or {}).items():
            self.responses[cursor].extend(responses)

    def add(self, cursor, response) -> None:
        self.responses[cursor].append(response)

    async def fetch_page(self, owner, name, cursor=None):
        self.calls.append(cursor)
        if not self.responses[cursor]:
            raise AssertionError(f"Unexpected fetch for cursor {cursor!r}")
        response = self.responses[cursor].popleft()
        if isinstance(response, Exception):
            raise response
        return response


def page(issues, end_cursor=None, has_next=False, rate_limit=None) -> IssuePage:
    return IssuePage(issues=issues, has_next_page=has_next, end_cursor=end_cursor, rate_limit=rate_limit)


