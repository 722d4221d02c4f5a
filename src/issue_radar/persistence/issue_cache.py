import logging
from typing import Iterable, List
from ..models.issue import Issue
from ..utils.redis_client import RedisClient

logger = logging.getLogger(__name__)

class IssueCache:
    """
    Keyed upsert cache of fetched issues, one Redis hash per repository.

    Hash fields are issue ids, so writing the same issue twice overwrites
    it in place and never duplicates it.
    """

    KEY_PREFIX = "issues:"

    def __init__(self, redis_client: RedisClient) -> None:
        self.redis_client = redis_client

    def _key(self, repo: str) -> str:
        return f"{self.KEY_PREFIX}{repo}"

    async def upsert_issues(self, repo: str, issues: Iterable[Issue]) -> int:
        """
        Insert or overwrite issues for a repository.
        Returns number of issues that were not stored before.
        """
        mapping = {str(issue.id): issue.model_dump_json() for issue in issues}
        if not mapping:
            return 0

        client = await self.redis_client.get_client()
        added = int(await client.hset(self._key(repo), mapping=mapping))
        logger.debug(f"CACHE_UPSERT repo={repo} written={len(mapping)} added={added}")
        return added

    async def get_issues(self, repo: str) -> List[Issue]:
        """All cached issues for a repository, newest first."""
        client = await self.redis_client.get_client()
        raw = await client.hvals(self._key(repo))
        issues = [Issue.model_validate_json(value) for value in raw]
        issues.sort(key=lambda issue: issue.created_at, reverse=True)
        return issues

    async def count(self, repo: str) -> int:
        client = await self.redis_client.get_client()
        return int(await client.hlen(self._key(repo)))

    async def has_been_scanned(self, repo: str) -> bool:
        return await self.count(repo) > 0

    async def clear(self, repo: str) -> int:
        """Delete every cached issue for a repository. Returns how many were removed."""
        client = await self.redis_client.get_client()
        removed = await self.count(repo)
        await client.delete(self._key(repo))
        if removed:
            logger.info(f"CACHE_CLEAR repo={repo} removed={removed}")
        return removed
