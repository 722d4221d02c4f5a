import openai
from typing import List, Optional
import logging
import time
from ..config import Settings, settings as default_settings
from .secrets import get_openrouter_key

logger = logging.getLogger(__name__)

# Track if effective config has been logged this process
_config_logged = False


class EmptyResponseError(Exception):
    """The provider answered, but with no usable content."""


def log_effective_config(config: Settings) -> None:
    """Log effective provider configuration once per process startup."""
    global _config_logged
    if _config_logged:
        return
    _config_logged = True

    logger.info(
        f"EFFECTIVE_CONFIG provider_order={','.join(config.llm_provider_order)} "
        f"ollama_model={config.ollama_model} openrouter_model={config.openrouter_model}"
    )


class LLMClient:
    """Text completion against an OpenAI-compatible endpoint (OpenRouter, Ollama)."""

    def __init__(
        self,
        name: str,
        model: str,
        base_url: str,
        api_key: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize LLM client.

        Args:
            name: Provider name used in logs and fallback errors
            model: Model identifier understood by the endpoint
            base_url: OpenAI-compatible API root
            api_key: API key (Ollama ignores it, so a dummy is sent)
            temperature: Sampling temperature (None = model default)
            timeout: Per-request timeout in seconds
        """
        self.name = name
        self.model = model
        self.base_url = base_url
        self.temperature = temperature
        self.client = openai.AsyncOpenAI(
            base_url=base_url,
            api_key=api_key or "ollama",  # Dummy key for Ollama
            timeout=timeout,
        )
        logger.info(f"Initialized {name} client: model={model} base_url={base_url}")

    async def complete(self, prompt: str) -> str:
        """
        Send a single-turn chat completion and return the answer text.

        Raises:
            EmptyResponseError: If the provider returns no content
            openai.OpenAIError: On transport or API errors
        """
        messages = [{"role": "user", "content": prompt}]

        request_ts = time.time()
        logger.info(f"LLM_REQUEST provider={self.name} model={self.model} prompt_chars={len(prompt)}")

        kwargs = {"model": self.model, "messages": messages}
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature

        try:
            resp = await self.client.chat.completions.create(**kwargs)
            content = resp.choices[0].message.content if resp.choices else None
            if not content or not content.strip():
                raise EmptyResponseError(f"{self.name} returned empty response")
        except Exception as e:
            duration_ms = int((time.time() - request_ts) * 1000)
            logger.error(f"LLM_RESPONSE provider={self.name} model={self.model} status=error duration_ms={duration_ms} error={str(e)[:100]}")
            raise

        duration_ms = int((time.time() - request_ts) * 1000)
        logger.info(f"LLM_RESPONSE provider={self.name} model={self.model} status=success duration_ms={duration_ms}")
        return content


def build_llm_clients(config: Optional[Settings] = None) -> List[LLMClient]:
    """
    Instantiate providers in the configured fallback order.

    OpenRouter is left out when no API key is configured.
    """
    config = config or default_settings
    log_effective_config(config)

    clients: List[LLMClient] = []
    for name in config.llm_provider_order:
        if name == "ollama":
            clients.append(LLMClient(
                name="ollama",
                model=config.ollama_model,
                base_url=config.ollama_base_url,
                temperature=config.llm_temperature,
                timeout=config.request_timeout * 10,
            ))
        elif name == "openrouter":
            api_key = config.openrouter_api_key or get_openrouter_key()
            if not api_key:
                logger.warning("OpenRouter API key not configured; skipping openrouter provider")
                continue
            clients.append(LLMClient(
                name="openrouter",
                model=config.openrouter_model,
                base_url=config.openrouter_base_url,
                api_key=api_key,
                temperature=config.llm_temperature,
                timeout=config.request_timeout * 10,
            ))
    return clients
