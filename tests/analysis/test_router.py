"""Test ordered provider fallback."""
import pytest
from issue_radar.analysis.router import AllProvidersFailedError, ProviderRouter


class FakeProvider:
    def __init__(self, name, answer=None, error=None):
        self.name = name
        self.answer = answer
        self.error = error
        self.prompts = []

    async def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.answer


@pytest.mark.asyncio
class TestProviderRouter:

    async def test_first_provider_answers(self):
        first = FakeProvider("ollama", answer="local answer")
        second = FakeProvider("openrouter", answer="cloud answer")

        answer = await ProviderRouter([first, second]).complete("prompt")

        assert answer == "local answer"
        assert second.prompts == []

    async def test_falls_back_on_error(self):
        first = FakeProvider("ollama", error=ConnectionError("connection refused"))
        second = FakeProvider("openrouter", answer="cloud answer")

        answer = await ProviderRouter([first, second]).complete("prompt")

        assert answer == "cloud answer"
        assert first.prompts == ["prompt"]
        assert second.prompts == ["prompt"]

    async def test_empty_answer_counts_as_failure(self):
        first = FakeProvider("ollama", answer="   ")
        second = FakeProvider("openrouter", answer="cloud answer")

        assert await ProviderRouter([first, second]).complete("prompt") == "cloud answer"

    async def test_all_failures_are_reported(self):
        first = FakeProvider("ollama", error=ConnectionError("connection refused"))
        second = FakeProvider("openrouter", error=RuntimeError("401 invalid api key"))

        with pytest.raises(AllProvidersFailedError) as exc_info:
            await ProviderRouter([first, second]).complete("prompt")

        message = str(exc_info.value)
        assert "ollama: connection refused" in message
        assert "openrouter: 401 invalid api key" in message
        assert [f.provider for f in exc_info.value.failures] == ["ollama", "openrouter"]

    async def test_third_provider_is_just_another_entry(self):
        providers = [
            FakeProvider("a", error=RuntimeError("down")),
            FakeProvider("b", error=RuntimeError("down")),
            FakeProvider("c", answer="third time lucky"),
        ]
        assert await ProviderRouter(providers).complete("prompt") == "third time lucky"

    async def test_no_providers(self):
        with pytest.raises(AllProvidersFailedError, match="no providers configured"):
            await ProviderRouter([]).complete("prompt")
