#!/usr/bin/env python3
"""
Ask an LLM about the cached open issues of a scanned repository.

Usage:
    python -m issue_radar.scripts.analyze_repo acme/widgets "What are the most common bugs?"
"""
import argparse
import asyncio
import logging
import sys
from dotenv import load_dotenv

from ..analysis.router import AllProvidersFailedError
from ..orchestration.issue_service import IssueRadarService, RepositoryNotScannedError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def run_analysis(repo: str, prompt: str) -> int:
    load_dotenv()
    service = IssueRadarService.from_settings()

    try:
        analysis = await service.analyze(repo, prompt)
    except RepositoryNotScannedError as e:
        logger.error(str(e))
        print(f'Run: python -m issue_radar.scripts.scan_repo {repo}', file=sys.stderr)
        return 2
    except AllProvidersFailedError as e:
        logger.error(f"Failed to analyze issues:\n{e}")
        return 1
    finally:
        await service.close()

    print(analysis)
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Analyze cached GitHub issues with an LLM"
    )
    parser.add_argument("repo", help='Repository in "owner/name" form')
    parser.add_argument("prompt", help="Natural-language question about the issues")

    args = parser.parse_args()
    sys.exit(asyncio.run(run_analysis(args.repo, args.prompt)))


if __name__ == "__main__":
    main()
