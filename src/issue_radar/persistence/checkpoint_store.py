"""Durable scan checkpoints."""
import logging
from abc import ABC, abstractmethod
from typing import Optional
from ..models.scan import ScanCheckpoint
from ..utils.redis_client import RedisClient

logger = logging.getLogger(__name__)


class CheckpointNotFoundError(Exception):
    """An update targeted a checkpoint that no longer exists."""

    def __init__(self, repo: str):
        self.repo = repo
        super().__init__(f"No scan checkpoint stored for '{repo}'")


class CheckpointStore(ABC):
    """Persistence for ScanCheckpoint records, keyed by repository."""

    @abstractmethod
    async def load(self, repo: str) -> Optional[ScanCheckpoint]:
        """Return the stored checkpoint, or None if there is none."""

    @abstractmethod
    async def create(self, checkpoint: ScanCheckpoint) -> ScanCheckpoint:
        """Store a new checkpoint, replacing any previous one for the repo."""

    @abstractmethod
    async def update(self, checkpoint: ScanCheckpoint) -> ScanCheckpoint:
        """Overwrite an existing checkpoint. Raises CheckpointNotFoundError if absent."""

    @abstractmethod
    async def delete(self, repo: str) -> bool:
        """Remove a checkpoint. Only used for explicit cleanup."""


class RedisCheckpointStore(CheckpointStore):
    """Stores each checkpoint as a JSON string under scan:checkpoint:{repo}."""

    KEY_PREFIX = "scan:checkpoint:"

    def __init__(self, redis_client: RedisClient) -> None:
        self.redis_client = redis_client

    def _key(self, repo: str) -> str:
        return f"{self.KEY_PREFIX}{repo}"

    async def load(self, repo: str) -> Optional[ScanCheckpoint]:
        client = await self.redis_client.get_client()
        raw = await client.get(self._key(repo))
        if raw is None:
            return None
        return ScanCheckpoint.model_validate_json(raw)

    async def create(self, checkpoint: ScanCheckpoint) -> ScanCheckpoint:
        client = await self.redis_client.get_client()
        await client.set(self._key(checkpoint.repo), checkpoint.model_dump_json())
        logger.info(f"CHECKPOINT_CREATE repo={checkpoint.repo} status={checkpoint.status.value}")
        return checkpoint

    async def update(self, checkpoint: ScanCheckpoint) -> ScanCheckpoint:
        client = await self.redis_client.get_client()
        # xx: only overwrite, never resurrect a checkpoint removed by cleanup
        written = await client.set(self._key(checkpoint.repo), checkpoint.model_dump_json(), xx=True)
        if not written:
            raise CheckpointNotFoundError(checkpoint.repo)
        return checkpoint

    async def delete(self, repo: str) -> bool:
        client = await self.redis_client.get_client()
        return bool(await client.delete(self._key(repo)))
