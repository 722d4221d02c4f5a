"""Scan checkpoint and scan result models.

A ScanCheckpoint is the durable record of how far a repository scan got.
It is rewritten once per fetched page, so an interrupted scan (crash,
rate limit, cancelled task) resumes from the last persisted page.
"""
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScanStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    RATE_LIMITED = "rate_limited"
    COMPLETED = "completed"
    FAILED = "failed"


class ScanCheckpoint(BaseModel):
    """Progress of one repository scan, keyed by "owner/name"."""

    model_config = ConfigDict(extra="ignore")

    repo: str
    status: ScanStatus = ScanStatus.NOT_STARTED
    cursor: str | None = Field(
        default=None,
        description="GraphQL endCursor of the last persisted page; None = start"
    )
    page_count: int = Field(default=0, ge=0)
    record_count: int = Field(default=0, ge=0)
    retry_after: datetime | None = None
    last_error: str | None = None
    started_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def fresh(cls, repo: str, now: datetime) -> "ScanCheckpoint":
        return cls(
            repo=repo,
            status=ScanStatus.IN_PROGRESS,
            started_at=now,
            updated_at=now,
        )

    def retry_pending(self, now: datetime) -> bool:
        """True while a rate-limited checkpoint must not be resumed yet."""
        return (
            self.status == ScanStatus.RATE_LIMITED
            and self.retry_after is not None
            and self.retry_after > now
        )


class QuotaSnapshot(BaseModel):
    remaining: int
    limit: int
    reset_at: datetime


class ScanProgress(BaseModel):
    page: int = 0
    count: int = 0


class ScanResult(BaseModel):
    """What scan and scan-status report back to the caller."""

    repo: str
    status: ScanStatus
    progress: ScanProgress
    message: str
    next_call_allowed_at: datetime | None = None
    rate_limit: QuotaSnapshot | None = None

    @classmethod
    def from_checkpoint(
        cls,
        checkpoint: ScanCheckpoint,
        message: str,
        rate_limit: QuotaSnapshot | None = None,
    ) -> "ScanResult":
        return cls(
            repo=checkpoint.repo,
            status=checkpoint.status,
            progress=ScanProgress(
                page=checkpoint.page_count,
                count=checkpoint.record_count,
            ),
            message=message,
            next_call_allowed_at=(
                checkpoint.retry_after
                if checkpoint.status == ScanStatus.RATE_LIMITED
                else None
            ),
            rate_limit=rate_limit,
        )
