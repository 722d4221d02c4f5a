"""
End-to-end flow through IssueRadarService: scan with a rate-limit pause,
resume, then analyze. Redis is faked, GitHub and the LLMs are scripted.
"""
import json
import pytest
from datetime import timedelta

from helpers import ScriptedFetcher, make_issues, page
from issue_radar.analysis.pipeline import AnalysisPipeline, PacingPolicy
from issue_radar.analysis.router import AllProvidersFailedError, ProviderRouter
from issue_radar.ingestion.rate_limit import RateLimitExceeded
from issue_radar.models.repository import InvalidRepositoryError
from issue_radar.models.scan import ScanStatus
from issue_radar.orchestration.issue_service import (
    IssueRadarService,
    MissingPromptError,
    RepositoryNotScannedError,
)
from issue_radar.scanning.coordinator import ScanCoordinator
from issue_radar.utils.logging import ForensicLogger


class NoPause(PacingPolicy):
    async def pause(self, seconds):
        pass


class ScriptedProvider:
    def __init__(self, name, answer=None, error=None):
        self.name = name
        self.answer = answer
        self.error = error
        self.calls = 0

    async def complete(self, prompt):
        self.calls += 1
        if self.error:
            raise self.error
        return self.answer


@pytest.fixture
def fetcher():
    return ScriptedFetcher()


@pytest.fixture
def forensic(tmp_path):
    logger = ForensicLogger("test_service", log_dir=str(tmp_path))
    yield logger
    logger.close()


def build_service(fetcher, checkpoint_store, cache, clock, providers, forensic=None):
    coordinator = ScanCoordinator(fetcher, checkpoint_store, cache, clock=clock)
    pipeline = AnalysisPipeline(router=ProviderRouter(providers), pacing=NoPause())
    return IssueRadarService(coordinator, cache, pipeline, forensic)


@pytest.mark.asyncio
async def test_scan_rate_limit_resume_and_analyze(fetcher, checkpoint_store, cache, clock, forensic):
    fetcher.add(None, page(make_issues(1, 100), end_cursor="c1", has_next=True))
    fetcher.add("c1", page(make_issues(101, 100), end_cursor="c2", has_next=True))
    fetcher.add("c2", RateLimitExceeded(60, clock() + timedelta(seconds=60)))
    fetcher.add("c2", page(make_issues(201, 42), end_cursor="c3"))

    ollama = ScriptedProvider("ollama", error=ConnectionError("connection refused"))
    openrouter = ScriptedProvider("openrouter", answer="Most issues are crashes.")
    service = build_service(fetcher, checkpoint_store, cache, clock, [ollama, openrouter], forensic)

    # 1. First scan stops at the rate limit after two pages
    first = await service.scan("acme/widgets")
    assert first.status == ScanStatus.RATE_LIMITED
    assert (first.progress.page, first.progress.count) == (2, 200)
    assert first.next_call_allowed_at == clock() + timedelta(seconds=60)

    # 2. Polling straight away returns the same state without network calls
    calls = len(fetcher.calls)
    second = await service.scan("acme/widgets")
    assert len(fetcher.calls) == calls
    assert second.status == ScanStatus.RATE_LIMITED
    assert second.progress == first.progress
    assert second.next_call_allowed_at == first.next_call_allowed_at

    # 3. After the window, the scan fetches page 3 only and completes
    clock.advance(60)
    third = await service.scan("acme/widgets")
    assert fetcher.calls == [None, "c1", "c2", "c2"]
    assert third.status == ScanStatus.COMPLETED
    assert (third.progress.page, third.progress.count) == (3, 242)

    status = await service.scan_status("acme/widgets")
    assert status.status == ScanStatus.COMPLETED
    assert status.progress.count == 242

    # 4. Analysis falls back from ollama to openrouter
    answer = await service.analyze("acme/widgets", "What are the most common problems?")
    assert answer == "Most issues are crashes."
    assert ollama.calls == 1 and openrouter.calls == 1

    with open(forensic.log_file) as f:
        events = [json.loads(line) for line in f]
    event_types = [e["event_type"] for e in events]
    assert event_types.count("SCAN_RESULT") == 3
    assert "ANALYZE_RESULT" in event_types
    analyze_request = next(e for e in events if e["event_type"] == "ANALYZE_REQUEST")
    assert "input_hash" in analyze_request
    assert "What are the most common problems?" not in json.dumps(events)


@pytest.mark.asyncio
class TestServiceValidation:

    @pytest.mark.parametrize("repo", ["", "acme", "acme/", "/widgets", "acme/widgets/extra", None])
    async def test_invalid_repository_rejected_before_io(self, repo, fetcher, checkpoint_store, cache, clock):
        service = build_service(fetcher, checkpoint_store, cache, clock, [])

        with pytest.raises(InvalidRepositoryError):
            await service.scan(repo)
        with pytest.raises(InvalidRepositoryError):
            await service.analyze(repo, "prompt")

        assert fetcher.calls == []

    async def test_missing_prompt(self, fetcher, checkpoint_store, cache, clock):
        service = build_service(fetcher, checkpoint_store, cache, clock, [])
        with pytest.raises(MissingPromptError):
            await service.analyze("acme/widgets", "   ")

    async def test_analyze_requires_scan(self, fetcher, checkpoint_store, cache, clock):
        service = build_service(fetcher, checkpoint_store, cache, clock, [ScriptedProvider("ollama", answer="x")])

        with pytest.raises(RepositoryNotScannedError) as exc_info:
            await service.analyze("acme/widgets", "Summarize")
        assert exc_info.value.repo == "acme/widgets"

    async def test_provider_exhaustion_surfaces_verbatim(self, fetcher, checkpoint_store, cache, clock):
        await cache.upsert_issues("acme/widgets", make_issues(1, 3))
        service = build_service(fetcher, checkpoint_store, cache, clock, [
            ScriptedProvider("ollama", error=ConnectionError("connection refused")),
            ScriptedProvider("openrouter", error=RuntimeError("402 insufficient credits")),
        ])

        with pytest.raises(AllProvidersFailedError) as exc_info:
            await service.analyze("acme/widgets", "Summarize")

        assert str(exc_info.value) == (
            "All LLM providers failed:\n"
            "ollama: connection refused\n"
            "openrouter: 402 insufficient credits"
        )

    async def test_close_releases_audit_log(self, fetcher, checkpoint_store, cache, clock, tmp_path):
        forensic = ForensicLogger("closing", log_dir=str(tmp_path))
        service = build_service(fetcher, checkpoint_store, cache, clock, [], forensic)
        assert forensic._audit_logger.handlers

        await service.close()

        assert forensic._audit_logger.handlers == []
