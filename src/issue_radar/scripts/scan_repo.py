#!/usr/bin/env python3
"""
Scan the open issues of a GitHub repository into the local cache.

A scan that hits the GitHub rate limit stops with a checkpoint and can be
resumed later by running the same command again.

Usage:
    python -m issue_radar.scripts.scan_repo acme/widgets
    python -m issue_radar.scripts.scan_repo acme/widgets --fresh
    python -m issue_radar.scripts.scan_repo acme/widgets --status
    python -m issue_radar.scripts.scan_repo acme/widgets --follow
"""
import argparse
import asyncio
import logging
from datetime import datetime, timezone
from dotenv import load_dotenv

from ..models.scan import ScanResult, ScanStatus
from ..orchestration.issue_service import IssueRadarService

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Extra slack after the advertised reset before resuming
RESUME_GRACE_SECONDS = 5


def print_result(result: ScanResult) -> None:
    print("\n" + "=" * 60)
    print(f"  Repository:  {result.repo}")
    print(f"  Status:      {result.status.value}")
    print(f"  Pages:       {result.progress.page}")
    print(f"  Issues:      {result.progress.count}")
    print(f"  Message:     {result.message}")
    if result.next_call_allowed_at:
        print(f"  Retry after: {result.next_call_allowed_at.isoformat()}")
    if result.rate_limit:
        print(f"  Quota:       {result.rate_limit.remaining}/{result.rate_limit.limit}")
    print("=" * 60 + "\n")


async def run_scan(repo: str, fresh: bool, status_only: bool, follow: bool) -> ScanResult:
    load_dotenv()
    service = IssueRadarService.from_settings()

    try:
        if status_only:
            result = await service.scan_status(repo)
            print_result(result)
            return result

        result = await service.scan(repo, fresh=fresh)
        print_result(result)

        while follow and result.status == ScanStatus.RATE_LIMITED and result.next_call_allowed_at:
            wait = (result.next_call_allowed_at - datetime.now(timezone.utc)).total_seconds()
            wait = max(0.0, wait) + RESUME_GRACE_SECONDS
            logger.info(f"⏳ Rate limited; sleeping {int(wait)}s before resuming {repo}")
            await asyncio.sleep(wait)
            result = await service.scan(repo)
            print_result(result)

        return result
    finally:
        await service.close()


def main():
    parser = argparse.ArgumentParser(
        description="Fetch and cache open issues from a GitHub repository"
    )
    parser.add_argument("repo", help='Repository in "owner/name" form')
    parser.add_argument(
        "--fresh", action="store_true",
        help="Discard cached issues and restart from the first page"
    )
    parser.add_argument(
        "--status", action="store_true",
        help="Only report scan progress, no network calls"
    )
    parser.add_argument(
        "--follow", action="store_true",
        help="Keep resuming after rate-limit windows until the scan completes"
    )

    args = parser.parse_args()

    asyncio.run(run_scan(
        repo=args.repo,
        fresh=args.fresh,
        status_only=args.status,
        follow=args.follow,
    ))


if __name__ == "__main__":
    main()
