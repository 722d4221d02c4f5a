"""Entry points behind scan, scan-status and analyze requests."""
import logging
from typing import Optional

from ..analysis.chunking import RecursiveTextSplitter
from ..analysis.pipeline import AnalysisPipeline, PacingPolicy
from ..analysis.router import ProviderRouter
from ..config import Settings, settings as default_settings
from ..ingestion.rate_limit import RateLimitGuard
from ..ingestion.base import RepositoryNotFoundError
from ..ingestion.github import GitHubIssueFetcher
from ..models.repository import parse_repo_string
from ..models.scan import ScanResult
from ..persistence.checkpoint_store import RedisCheckpointStore
from ..persistence.issue_cache import IssueCache
from ..scanning.coordinator import ScanCoordinator
from ..utils.llm_client import build_llm_clients
from ..utils.logging import ForensicLogger
from ..utils.redis_client import RedisClient

logger = logging.getLogger(__name__)


class MissingPromptError(ValueError):
    def __init__(self) -> None:
        super().__init__("Missing or invalid prompt: provide a natural-language prompt for analysis")


class RepositoryNotScannedError(Exception):
    """Analyze was requested for a repository with no cached issues."""

    def __init__(self, repo: str):
        self.repo = repo
        super().__init__(
            f"Repository '{repo}' not scanned. Scan it first before requesting an analysis."
        )


class IssueRadarService:
    """Validates requests and hands them to the scan coordinator or the analysis pipeline."""

    def __init__(
        self,
        coordinator: ScanCoordinator,
        cache: IssueCache,
        pipeline: AnalysisPipeline,
        forensic: Optional[ForensicLogger] = None,
    ) -> None:
        self.coordinator = coordinator
        self.cache = cache
        self.pipeline = pipeline
        self.forensic = forensic
        self._redis_client: Optional[RedisClient] = None

    def _audit(self, event_type: str, severity: str, repo: str, **kwargs) -> None:
        if self.forensic:
            self.forensic.log_event(event_type, severity, repo=repo, **kwargs)

    async def scan(self, repo: str, fresh: bool = False) -> ScanResult:
        ref = parse_repo_string(repo)
        logger.info(f"Scanning repository: {ref} fresh={fresh}")
        self._audit("SCAN_REQUEST", "INFO", ref.full_name, details={"fresh": fresh})

        try:
            result = await self.coordinator.scan(ref, fresh=fresh)
        except RepositoryNotFoundError as e:
            self._audit("SCAN_NOT_FOUND", "WARN", ref.full_name, details={"error": str(e)})
            raise
        except Exception as e:
            self._audit("SCAN_ERROR", "CRITICAL", ref.full_name, details={"error": str(e)})
            raise

        self._audit("SCAN_RESULT", "INFO", ref.full_name, details={
            "status": result.status.value,
            "page": result.progress.page,
            "count": result.progress.count,
        })
        return result

    async def scan_status(self, repo: str) -> ScanResult:
        ref = parse_repo_string(repo)
        return await self.coordinator.get_status(ref)

    async def analyze(self, repo: str, prompt: str) -> str:
        ref = parse_repo_string(repo)
        if not isinstance(prompt, str) or not prompt.strip():
            raise MissingPromptError()

        if not await self.cache.has_been_scanned(ref.full_name):
            raise RepositoryNotScannedError(ref.full_name)

        issues = await self.cache.get_issues(ref.full_name)
        logger.info(f"Analyzing {len(issues)} issues for {ref}")
        self._audit("ANALYZE_REQUEST", "INFO", ref.full_name, input_text=prompt, details={"issues": len(issues)})

        try:
            analysis = await self.pipeline.analyze(prompt, issues)
        except Exception as e:
            self._audit("ANALYZE_ERROR", "CRITICAL", ref.full_name, details={"error": str(e)})
            raise

        self._audit("ANALYZE_RESULT", "INFO", ref.full_name, details={"answer_chars": len(analysis)})
        return analysis

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "IssueRadarService":
        """Wire the service against Redis, GitHub and the configured LLM providers."""
        config = config or default_settings
        redis_client = RedisClient(config.redis_url)
        cache = IssueCache(redis_client)
        coordinator = ScanCoordinator(
            fetcher=GitHubIssueFetcher(
                graphql_url=config.github_graphql_url,
                page_size=config.github_page_size,
            ),
            checkpoints=RedisCheckpointStore(redis_client),
            cache=cache,
            guard=RateLimitGuard(safety_margin=config.rate_limit_safety_margin),
        )
        pipeline = AnalysisPipeline(
            router=ProviderRouter(build_llm_clients(config)),
            splitter=RecursiveTextSplitter(config.chunk_size, config.chunk_overlap),
            pacing=PacingPolicy(config.chunk_delay_seconds, config.synthesis_delay_seconds),
            direct_token_threshold=config.direct_token_threshold,
            body_preview_chars=config.issue_body_preview_chars,
        )
        service = cls(coordinator, cache, pipeline, ForensicLogger("issue_radar", config.log_dir))
        service._redis_client = redis_client
        return service

    async def close(self) -> None:
        fetcher = self.coordinator.fetcher
        if isinstance(fetcher, GitHubIssueFetcher):
            await fetcher.close()
        if self._redis_client is not None:
            await self._redis_client.close()
        if self.forensic is not None:
            self.forensic.close()
