#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""One-time script to delete a repository's scan checkpoint and cached issues."""
import argparse
import asyncio

from issue_radar.config import settings
from issue_radar.models.repository import parse_repo_string
from issue_radar.persistence.checkpoint_store import RedisCheckpointStore
from issue_radar.persistence.issue_cache import IssueCache
from issue_radar.utils.redis_client import RedisClient


async def cleanup_repo(repo: str, redis_url: str) -> None:
    """Remove everything stored for one repository."""
    key = parse_repo_string(repo).full_name
    redis_client = RedisClient(redis_url)

    try:
        removed_issues = await IssueCache(redis_client).clear(key)
        removed_checkpoint = await RedisCheckpointStore(redis_client).delete(key)
    finally:
        await redis_client.close()

    print(f"🗑️  {key}: removed {removed_issues} cached issues")
    print(f"🗑️  {key}: checkpoint {'removed' if removed_checkpoint else 'not found'}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("repo", help='Repository in "owner/name" form')
    parser.add_argument("--redis-url", default=settings.redis_url)
    args = parser.parse_args()
    asyncio.run(cleanup_repo(args.repo, args.redis_url))
