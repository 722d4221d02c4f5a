from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional
from ..models.issue import Issue
from .rate_limit import RateLimitInfo


class RepositoryNotFoundError(Exception):
    """The upstream API reports that the repository does not exist."""

    def __init__(self, repo: str):
        self.repo = repo
        super().__init__(f"Repository '{repo}' not found")


class IssueFetchError(Exception):
    """Any non rate-limit, non not-found failure while fetching issues."""

    def __init__(self, repo: str, reason: str, status_code: Optional[int] = None):
        self.repo = repo
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to fetch issues for '{repo}': {reason}")


@dataclass
class IssuePage:
    """One page of a paginated issue listing."""
    issues: List[Issue] = field(default_factory=list)
    has_next_page: bool = False
    end_cursor: Optional[str] = None
    rate_limit: Optional[RateLimitInfo] = None


class PageFetcher(ABC):
    """Abstract base class for paginated issue sources."""

    @abstractmethod
    async def fetch_page(
        self,
        owner: str,
        name: str,
        cursor: Optional[str] = None
    ) -> IssuePage:
        """
        Fetch the page of issues that follows `cursor`.

        Args:
            owner: Repository owner
            name: Repository name
            cursor: Opaque pagination token (None = first page)

        Returns:
            IssuePage with issues, next cursor and quota telemetry

        Raises:
            RateLimitExceeded: Quota headroom below the safety margin
            RepositoryNotFoundError: The repository does not exist
            IssueFetchError: Any other upstream failure
        """
        pass
