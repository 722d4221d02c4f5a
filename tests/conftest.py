"""Shared fixtures backed by an in-process fake Redis."""
import pytest
import fakeredis
import fakeredis.aioredis

from helpers import FakeClock
from issue_radar.persistence.checkpoint_store import RedisCheckpointStore
from issue_radar.persistence.issue_cache import IssueCache
from issue_radar.utils.redis_client import RedisClient


@pytest.fixture
def fake_redis():
    # Private server per test: FakeRedis instances otherwise share state
    return fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def redis_client(fake_redis):
    client = RedisClient()
    client.client = fake_redis
    return client


@pytest.fixture
def cache(redis_client):
    return IssueCache(redis_client)


@pytest.fixture
def checkpoint_store(redis_client):
    return RedisCheckpointStore(redis_client)


@pytest.fixture
def clock():
    return FakeClock()
