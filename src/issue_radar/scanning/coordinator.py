"""
ScanCoordinator: resumable, checkpointed pagination over a repository's open issues.

State machine per repository:

    not_started -> in_progress -> completed | rate_limited | failed
    rate_limited -> in_progress   (once retry_after has passed)
    *            -> in_progress   (fresh scan, or rescan of a completed one)

The checkpoint is persisted after every page and before the next request,
so it never points past a page whose issues are not yet stored. Upserts are
idempotent, which makes re-fetching that one page after a crash harmless.
"""
import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from ..ingestion.base import PageFetcher, RepositoryNotFoundError
from ..ingestion.rate_limit import RateLimitExceeded, RateLimitGuard, RateLimitInfo
from ..models.repository import RepoRef
from ..models.scan import QuotaSnapshot, ScanCheckpoint, ScanResult, ScanStatus
from ..persistence.checkpoint_store import CheckpointStore
from ..persistence.issue_cache import IssueCache

logger = logging.getLogger(__name__)


def _quota(info: Optional[RateLimitInfo]) -> Optional[QuotaSnapshot]:
    if info is None:
        return None
    return QuotaSnapshot(remaining=info.remaining, limit=info.limit, reset_at=info.reset_at)


class ScanCoordinator:
    """Drives the fetch -> persist -> checkpoint loop for one repository at a time."""

    def __init__(
        self,
        fetcher: PageFetcher,
        checkpoints: CheckpointStore,
        cache: IssueCache,
        guard: Optional[RateLimitGuard] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.fetcher = fetcher
        self.checkpoints = checkpoints
        self.cache = cache
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.guard = guard or RateLimitGuard(clock=self._clock)
        # One writer per repository checkpoint within this process.
        # Entries live only while a scan holds or waits on them.
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    async def scan(self, repo: RepoRef, fresh: bool = False) -> ScanResult:
        """
        Fetch (or resume fetching) all open issues of a repository.

        Args:
            repo: Validated repository reference
            fresh: Discard cached issues and restart from the first page

        Returns:
            ScanResult describing where the scan stopped. A rate limit is a
            normal outcome here, not an exception.

        Raises:
            RepositoryNotFoundError: The repository does not exist upstream
            Exception: Any other fetch or persistence failure (checkpoint is
                marked failed and keeps the last good page)
        """
        key = repo.full_name
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                return await self._scan_locked(repo, fresh)
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def _scan_locked(self, repo: RepoRef, fresh: bool) -> ScanResult:
        key = repo.full_name
        now = self._clock()
        checkpoint = await self.checkpoints.load(key)
        created_here = checkpoint is None

        if checkpoint is None or fresh or checkpoint.status == ScanStatus.COMPLETED:
            reason = "fresh" if fresh else ("new" if checkpoint is None else "rescan")
            checkpoint = await self._reset(key, now, reason)

        if checkpoint.retry_pending(now):
            wait_seconds = math.ceil((checkpoint.retry_after - now).total_seconds())
            logger.info(f"SCAN_SKIP repo={key} status=rate_limited wait_seconds={wait_seconds}")
            return ScanResult.from_checkpoint(
                checkpoint,
                f"Rate limited. Retry in {wait_seconds} seconds.",
            )

        if checkpoint.status != ScanStatus.IN_PROGRESS or checkpoint.retry_after is not None:
            logger.info(f"SCAN_RESUME repo={key} from_status={checkpoint.status.value} page={checkpoint.page_count}")
            checkpoint = checkpoint.model_copy(update={
                "status": ScanStatus.IN_PROGRESS,
                "retry_after": None,
                "last_error": None,
                "updated_at": now,
            })
            checkpoint = await self.checkpoints.update(checkpoint)

        return await self._run_loop(repo, checkpoint, created_here)

    async def _reset(self, key: str, now: datetime, reason: str) -> ScanCheckpoint:
        # The only place cached issues are deleted wholesale
        removed = await self.cache.clear(key)
        logger.info(f"SCAN_RESET repo={key} reason={reason} cleared_issues={removed}")
        return await self.checkpoints.create(ScanCheckpoint.fresh(key, now))

    async def _run_loop(self, repo: RepoRef, checkpoint: ScanCheckpoint, created_here: bool) -> ScanResult:
        key = repo.full_name
        last_quota: Optional[RateLimitInfo] = None

        while True:
            try:
                page = await self.fetcher.fetch_page(repo.owner, repo.name, checkpoint.cursor)
            except RateLimitExceeded as e:
                return await self._pause(checkpoint, e, last_quota)
            except RepositoryNotFoundError:
                if created_here and checkpoint.page_count == 0:
                    await self.checkpoints.delete(key)
                raise
            except Exception as e:
                await self._fail(checkpoint, e)
                raise

            try:
                added = await self.cache.upsert_issues(key, page.issues)
                # Count from HLEN so a page fetched twice still leaves the total exact
                stored = await self.cache.count(key)
                advanced = checkpoint.model_copy(update={
                    "cursor": page.end_cursor or checkpoint.cursor,
                    "page_count": checkpoint.page_count + 1,
                    "record_count": stored,
                    "updated_at": self._clock(),
                })
                checkpoint = await self.checkpoints.update(advanced)
            except Exception as e:
                await self._fail(checkpoint, e)
                raise

            if page.rate_limit is not None:
                last_quota = page.rate_limit
            logger.info(
                f"SCAN_PAGE repo={key} page={checkpoint.page_count} fetched={len(page.issues)} "
                f"added={added} total={checkpoint.record_count} has_next={page.has_next_page}"
            )

            if not page.has_next_page:
                break

            if page.rate_limit is not None:
                try:
                    self.guard.check(page.rate_limit)
                except RateLimitExceeded as e:
                    return await self._pause(checkpoint, e, last_quota)

        checkpoint = checkpoint.model_copy(update={
            "status": ScanStatus.COMPLETED,
            "retry_after": None,
            "last_error": None,
            "updated_at": self._clock(),
        })
        checkpoint = await self.checkpoints.update(checkpoint)
        logger.info(f"SCAN_COMPLETE repo={key} pages={checkpoint.page_count} issues={checkpoint.record_count}")
        return ScanResult.from_checkpoint(
            checkpoint,
            f"Scan complete. Cached {checkpoint.record_count} open issues.",
            rate_limit=_quota(last_quota),
        )

    async def _pause(
        self,
        checkpoint: ScanCheckpoint,
        error: RateLimitExceeded,
        last_quota: Optional[RateLimitInfo],
    ) -> ScanResult:
        checkpoint = checkpoint.model_copy(update={
            "status": ScanStatus.RATE_LIMITED,
            "retry_after": error.reset_at,
            "updated_at": self._clock(),
        })
        checkpoint = await self.checkpoints.update(checkpoint)
        wait_seconds = math.ceil(error.wait_seconds)
        logger.warning(
            f"SCAN_RATE_LIMITED repo={checkpoint.repo} page={checkpoint.page_count} "
            f"issues={checkpoint.record_count} retry_after={error.reset_at.isoformat()}"
        )
        return ScanResult.from_checkpoint(
            checkpoint,
            f"Rate limited after {checkpoint.page_count} pages "
            f"({checkpoint.record_count} issues). Retry in {wait_seconds} seconds.",
            rate_limit=_quota(error.info or last_quota),
        )

    async def _fail(self, checkpoint: ScanCheckpoint, error: Exception) -> None:
        logger.error(f"SCAN_FAILED repo={checkpoint.repo} page={checkpoint.page_count} error={error}")
        failed = checkpoint.model_copy(update={
            "status": ScanStatus.FAILED,
            "last_error": str(error),
            "updated_at": self._clock(),
        })
        try:
            await self.checkpoints.update(failed)
        except Exception as store_error:
            # The original error is what the caller needs; the last good checkpoint is still stored
            logger.error(f"SCAN_FAILED checkpoint not updated repo={checkpoint.repo} error={store_error}")

    async def get_status(self, repo: RepoRef) -> ScanResult:
        """Report scan progress without touching the network."""
        key = repo.full_name
        checkpoint = await self.checkpoints.load(key)

        if checkpoint is None:
            count = await self.cache.count(key)
            if count > 0:
                # Issues cached by a process that never tracked a checkpoint
                synthetic = ScanCheckpoint(repo=key, status=ScanStatus.COMPLETED, record_count=count)
                return ScanResult.from_checkpoint(synthetic, f"Scan complete. {count} issues cached.")
            return ScanResult.from_checkpoint(
                ScanCheckpoint(repo=key),
                "Repository has not been scanned yet.",
            )

        now = self._clock()
        if checkpoint.status == ScanStatus.RATE_LIMITED:
            if checkpoint.retry_pending(now):
                wait_seconds = math.ceil((checkpoint.retry_after - now).total_seconds())
                return ScanResult.from_checkpoint(
                    checkpoint,
                    f"Rate limited. Retry in {wait_seconds} seconds.",
                )
            resumable = checkpoint.model_copy(update={"status": ScanStatus.IN_PROGRESS})
            return ScanResult.from_checkpoint(
                resumable,
                f"Rate limit window has passed. Scan again to resume from page {checkpoint.page_count + 1}.",
            )

        messages = {
            ScanStatus.IN_PROGRESS: f"Scan in progress: {checkpoint.page_count} pages, {checkpoint.record_count} issues.",
            ScanStatus.COMPLETED: f"Scan complete. {checkpoint.record_count} issues cached.",
            ScanStatus.FAILED: f"Scan failed: {checkpoint.last_error}",
            ScanStatus.NOT_STARTED: "Repository has not been scanned yet.",
        }
        return ScanResult.from_checkpoint(checkpoint, messages[checkpoint.status])
