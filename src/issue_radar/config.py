"""
Centralized configuration for Issue Radar.
All parameters in one place, overridable via environment variables.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Literal, List
import yaml
from pathlib import Path

# Load YAML config if exists
def _load_yaml_config() -> dict:
    """Load config.yaml if it exists, else return empty dict."""
    config_path = Path(__file__).parent.parent.parent / "config.yaml"
    if config_path.exists():
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    return {}

_yaml = _load_yaml_config()

ProviderName = Literal["ollama", "openrouter"]

class Settings(BaseSettings):
    """Application configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # === Storage ===
    redis_url: str = Field(
        default=_yaml.get('storage', {}).get('redis_url', "redis://localhost:6379/0"),
        description="Redis holding cached issues and scan checkpoints"
    )

    # === GitHub Scanning ===
    github_graphql_url: str = Field(
        default=_yaml.get('github', {}).get('graphql_url', "https://api.github.com/graphql")
    )
    github_page_size: int = Field(
        default=_yaml.get('github', {}).get('page_size', 100),
        ge=1,
        le=100,
        description="Issues per GraphQL page (GitHub caps this at 100)"
    )
    rate_limit_safety_margin: int = Field(
        default=_yaml.get('github', {}).get('rate_limit_safety_margin', 3),
        ge=0,
        description="Pause the scan once remaining quota drops below this"
    )
    request_timeout: int = Field(default=30)

    # === LLM Configuration ===
    # Local-first: Ollama is tried before OpenRouter unless overridden
    llm_provider_order: List[ProviderName] = Field(
        default=_yaml.get('llm', {}).get('provider_order', ["ollama", "openrouter"]),
        min_length=1,
        description="Inference providers in fallback order"
    )
    ollama_base_url: str = Field(
        default=_yaml.get('llm', {}).get('ollama_base_url', "http://localhost:11434/v1"),
        description="Ollama OpenAI-compatible endpoint"
    )
    ollama_model: str = Field(
        default=_yaml.get('llm', {}).get('ollama_model', "deepseek-r1")
    )
    openrouter_base_url: str = Field(
        default=_yaml.get('llm', {}).get('openrouter_base_url', "https://openrouter.ai/api/v1")
    )
    openrouter_model: str = Field(
        default=_yaml.get('llm', {}).get('openrouter_model', "nex-agi/deepseek-v3.1-nex-n1:free")
    )
    openrouter_api_key: str | None = Field(default=None)
    llm_temperature: float | None = Field(
        default=_yaml.get('llm', {}).get('temperature'),
        ge=0.0,
        le=2.0,
        description="LLM temperature (None = provider default)"
    )

    # === Analysis ===
    chunk_size: int = Field(
        default=_yaml.get('analysis', {}).get('chunk_size', 25000),
        gt=0,
        description="Max characters per chunk (~6250 tokens)"
    )
    chunk_overlap: int = Field(
        default=_yaml.get('analysis', {}).get('chunk_overlap', 2500),
        ge=0,
        description="Characters shared between adjacent chunks"
    )
    direct_token_threshold: int = Field(
        default=_yaml.get('analysis', {}).get('direct_token_threshold', 40000),
        description="Corpora estimated at or below this go to the LLM in one call"
    )
    chunk_delay_seconds: float = Field(
        default=_yaml.get('analysis', {}).get('chunk_delay_seconds', 2.0),
        ge=0.0
    )
    synthesis_delay_seconds: float = Field(
        default=_yaml.get('analysis', {}).get('synthesis_delay_seconds', 1.0),
        ge=0.0
    )
    issue_body_preview_chars: int = Field(
        default=_yaml.get('analysis', {}).get('issue_body_preview_chars', 300),
        gt=0
    )

    # === Logging ===
    log_dir: str = Field(default=_yaml.get('logging', {}).get('log_dir', "./logs"))


settings = Settings()
