import httpx
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from ..models.issue import Issue
from ..utils.secrets import get_github_token
from .base import IssueFetchError, IssuePage, PageFetcher, RepositoryNotFoundError
from .rate_limit import RateLimitExceeded, RateLimitInfo
from ..config import settings

logger = logging.getLogger(__name__)

# Used when GitHub signals a rate limit without telling us when it resets
DEFAULT_RATE_LIMIT_BACKOFF = timedelta(hours=1)

ISSUES_QUERY = """
query($owner: String!, $repo: String!, $cursor: String, $pageSize: Int!) {
  repository(owner: $owner, name: $repo) {
    issues(first: $pageSize, states: OPEN, after: $cursor, orderBy: {field: CREATED_AT, direction: DESC}) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        databaseId
        title
        body
        url
        createdAt
      }
    }
  }
  rateLimit {
    remaining
    limit
    resetAt
  }
}
"""


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class GitHubIssueFetcher(PageFetcher):
    """Cursor-paginated open-issue fetcher backed by the GitHub GraphQL API."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        token: Optional[str] = None,
        graphql_url: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> None:
        self.graphql_url = graphql_url or settings.github_graphql_url
        self.page_size = page_size or settings.github_page_size
        self.token = token if token is not None else get_github_token()
        self._client = client
        self._owns_client = client is None

        if self.token:
            logger.info("Using GitHub token authentication (5,000 points/hour)")
        else:
            logger.warning("No GitHub token configured; GraphQL API calls will be rejected")

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=settings.request_timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def fetch_page(
        self,
        owner: str,
        name: str,
        cursor: Optional[str] = None
    ) -> IssuePage:
        repo = f"{owner}/{name}"
        client = await self._get_client()
        payload = {
            "query": ISSUES_QUERY,
            "variables": {
                "owner": owner,
                "repo": name,
                "cursor": cursor,
                "pageSize": self.page_size,
            },
        }

        try:
            response = await client.post(self.graphql_url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error(f"GitHub transport error for {repo}: {e}")
            raise IssueFetchError(repo, str(e)) from e

        self._raise_for_status(repo, response)

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"GitHub returned a non-JSON body for {repo}: status={response.status_code}")
            raise IssueFetchError(repo, f"invalid JSON response: {e}", response.status_code) from e
        errors = body.get("errors") or []
        if errors:
            self._raise_for_graphql_errors(repo, errors, response)

        data = body.get("data") or {}
        repository = data.get("repository")
        if repository is None:
            raise RepositoryNotFoundError(repo)

        issues_block = repository["issues"]
        issues = [
            Issue(
                id=node["databaseId"],
                title=node["title"],
                body=node.get("body"),
                html_url=node["url"],
                created_at=_parse_timestamp(node["createdAt"]),
            )
            for node in issues_block["nodes"]
        ]

        rate_limit = None
        if data.get("rateLimit"):
            rate_limit = RateLimitInfo(
                remaining=data["rateLimit"]["remaining"],
                limit=data["rateLimit"]["limit"],
                reset_at=_parse_timestamp(data["rateLimit"]["resetAt"]),
            )

        page_info = issues_block["pageInfo"]
        return IssuePage(
            issues=issues,
            has_next_page=bool(page_info["hasNextPage"]),
            end_cursor=page_info.get("endCursor"),
            rate_limit=rate_limit,
        )

    def _raise_for_status(self, repo: str, response: httpx.Response) -> None:
        if response.is_success:
            return
        if response.status_code == 404:
            raise RepositoryNotFoundError(repo)
        if response.status_code in (403, 429) and self._looks_rate_limited(response):
            raise self._rate_limit_from_headers(response)
        logger.error(f"GitHub API error for {repo}: status={response.status_code}")
        raise IssueFetchError(repo, response.text[:200] or response.reason_phrase, response.status_code)

    def _raise_for_graphql_errors(self, repo: str, errors: List[Dict[str, Any]], response: httpx.Response) -> None:
        for error in errors:
            message = error.get("message", "")
            if error.get("type") == "NOT_FOUND" or "Could not resolve" in message:
                raise RepositoryNotFoundError(repo)
            if error.get("type") == "RATE_LIMITED" or "rate limit" in message.lower():
                raise self._rate_limit_from_headers(response)
        reason = "; ".join(e.get("message", "unknown error") for e in errors)
        raise IssueFetchError(repo, reason, response.status_code)

    @staticmethod
    def _looks_rate_limited(response: httpx.Response) -> bool:
        if response.headers.get("x-ratelimit-remaining") == "0":
            return True
        if "retry-after" in response.headers:
            return True
        return "rate limit" in response.text.lower()

    @staticmethod
    def _rate_limit_from_headers(response: httpx.Response) -> RateLimitExceeded:
        now = datetime.now(timezone.utc)
        if response.headers.get("retry-after", "").isdigit():
            reset_at = now + timedelta(seconds=int(response.headers["retry-after"]))
        elif response.headers.get("x-ratelimit-reset", "").isdigit():
            reset_at = datetime.fromtimestamp(int(response.headers["x-ratelimit-reset"]), tz=timezone.utc)
        else:
            reset_at = now + DEFAULT_RATE_LIMIT_BACKOFF

        info = None
        if response.headers.get("x-ratelimit-limit", "").isdigit():
            info = RateLimitInfo(
                remaining=int(response.headers.get("x-ratelimit-remaining", "0") or 0),
                limit=int(response.headers["x-ratelimit-limit"]),
                reset_at=reset_at,
            )
        return RateLimitExceeded((reset_at - now).total_seconds(), reset_at, info)
