"""
AnalysisPipeline: answer a prompt over a repository's cached issues.

Small corpora go to the LLM in a single call. Larger ones are split into
overlapping chunks, each chunk is summarized in turn, and a final call
synthesizes the answer from the batch summaries. Chunk calls run one after
another with a pause in between to stay within provider rate limits.
"""
import asyncio
import logging
from typing import Optional, Sequence

from ..models.issue import Issue
from .chunking import RecursiveTextSplitter
from .formatting import estimate_tokens, format_issues_for_llm
from .prompts import build_chunk_prompt, build_prompt, build_synthesis_prompt
from .router import ProviderRouter

logger = logging.getLogger(__name__)

NOTHING_TO_ANALYZE = "No issues to analyze."
SUMMARY_SEPARATOR = "\n\n---\n\n"


class PacingPolicy:
    """Time-based pause between sequential pipeline steps."""

    def __init__(self, chunk_delay_seconds: float = 2.0, synthesis_delay_seconds: float = 1.0):
        self.chunk_delay_seconds = chunk_delay_seconds
        self.synthesis_delay_seconds = synthesis_delay_seconds

    async def pause(self, seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)

    async def between_chunks(self) -> None:
        await self.pause(self.chunk_delay_seconds)

    async def before_synthesis(self) -> None:
        await self.pause(self.synthesis_delay_seconds)


class AnalysisPipeline:
    """Direct or chunked map-reduce analysis over formatted issues."""

    def __init__(
        self,
        router: ProviderRouter,
        splitter: Optional[RecursiveTextSplitter] = None,
        pacing: Optional[PacingPolicy] = None,
        direct_token_threshold: int = 40000,
        body_preview_chars: int = 300,
    ):
        self.router = router
        self.splitter = splitter or RecursiveTextSplitter()
        self.pacing = pacing or PacingPolicy()
        self.direct_token_threshold = direct_token_threshold
        self.body_preview_chars = body_preview_chars

    async def analyze(self, prompt: str, issues: Sequence[Issue]) -> str:
        """
        Produce one answer to `prompt` from the given issues.

        Raises:
            AllProvidersFailedError: If any step exhausts every provider
        """
        if not issues:
            return NOTHING_TO_ANALYZE

        issues_text = format_issues_for_llm(issues, self.body_preview_chars)
        total_tokens = estimate_tokens(issues_text)
        logger.info(f"ANALYSIS_START issues={len(issues)} estimated_tokens={total_tokens}")

        if total_tokens <= self.direct_token_threshold:
            logger.info("ANALYSIS_PATH path=direct")
            return await self.router.complete(build_prompt(prompt, issues_text))

        return await self._analyze_chunked(prompt, issues_text)

    async def _analyze_chunked(self, prompt: str, issues_text: str) -> str:
        chunks = self.splitter.split_text(issues_text)
        logger.info(f"ANALYSIS_PATH path=chunked chunks={len(chunks)}")

        summaries = []
        for i, chunk in enumerate(chunks, 1):
            logger.info(f"ANALYSIS_CHUNK batch={i}/{len(chunks)} estimated_tokens={estimate_tokens(chunk)}")
            summary = await self.router.complete(build_chunk_prompt(chunk, i, len(chunks)))
            summaries.append(f"Batch {i} Summary:\n{summary}")

            if i < len(chunks):
                await self.pacing.between_chunks()

        logger.info("ANALYSIS_SYNTHESIS generating final analysis")
        await self.pacing.before_synthesis()

        combined = SUMMARY_SEPARATOR.join(summaries)
        return await self.router.complete(build_synthesis_prompt(prompt, combined))
