import logging
from dataclasses import dataclass
from typing import List, Protocol, Sequence

logger = logging.getLogger(__name__)


class InferenceProvider(Protocol):
    """Anything that can answer a text prompt."""

    name: str

    async def complete(self, prompt: str) -> str:
        ...


@dataclass(frozen=True)
class ProviderFailure:
    provider: str
    reason: str


class AllProvidersFailedError(Exception):
    """Every configured provider failed; the message lists each one's reason."""

    def __init__(self, failures: Sequence[ProviderFailure]):
        self.failures = list(failures)
        if self.failures:
            details = "\n".join(f"{f.provider}: {f.reason}" for f in self.failures)
        else:
            details = "no providers configured"
        super().__init__(f"All LLM providers failed:\n{details}")


class ProviderRouter:
    """Tries providers in order and returns the first non-empty answer."""

    def __init__(self, providers: Sequence[InferenceProvider]):
        self.providers = list(providers)

    @property
    def provider_names(self) -> List[str]:
        return [p.name for p in self.providers]

    async def complete(self, prompt: str) -> str:
        failures: List[ProviderFailure] = []

        for provider in self.providers:
            try:
                answer = await provider.complete(prompt)
            except Exception as e:
                logger.warning(f"PROVIDER_FAILED provider={provider.name} error={e}")
                failures.append(ProviderFailure(provider.name, str(e) or type(e).__name__))
                continue

            if not answer or not answer.strip():
                logger.warning(f"PROVIDER_FAILED provider={provider.name} error=empty response")
                failures.append(ProviderFailure(provider.name, "empty response"))
                continue

            if failures:
                logger.info(f"PROVIDER_FALLBACK provider={provider.name} after={len(failures)} failures")
            return answer

        raise AllProvidersFailedError(failures)
