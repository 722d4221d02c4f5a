"""Test configuration."""
import pytest
from pydantic import ValidationError
from issue_radar.config import Settings


class TestConfigValidation:

    def test_default_config_loads(self):
        """Config should load without errors."""
        config = Settings()
        assert config.redis_url.startswith("redis://")
        assert config.github_page_size > 0
        assert config.chunk_overlap < config.chunk_size

    def test_yaml_config_defaults(self):
        """YAML config values should be loaded."""
        config = Settings()
        # These should come from config.yaml
        assert config.chunk_size == 25000
        assert config.chunk_overlap == 2500
        assert config.direct_token_threshold == 40000
        assert config.rate_limit_safety_margin == 3

    def test_local_provider_first_by_default(self, monkeypatch):
        monkeypatch.delenv("LLM_PROVIDER_ORDER", raising=False)
        config = Settings()
        assert config.llm_provider_order == ["ollama", "openrouter"]

    def test_env_var_override(self, monkeypatch):
        """Environment variables should override YAML."""
        monkeypatch.setenv("CHUNK_SIZE", "10000")
        monkeypatch.setenv("LLM_PROVIDER_ORDER", '["openrouter", "ollama"]')

        config = Settings()
        assert config.chunk_size == 10000
        assert config.llm_provider_order == ["openrouter", "ollama"]

    def test_unknown_provider_rejected(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER_ORDER", '["anthropic"]')
        with pytest.raises(ValidationError):
            Settings()

    def test_page_size_bounds(self, monkeypatch):
        """GitHub caps GraphQL pages at 100 nodes."""
        monkeypatch.setenv("GITHUB_PAGE_SIZE", "500")
        with pytest.raises(ValidationError):
            Settings()

    def test_delays_non_negative(self):
        config = Settings()
        assert config.chunk_delay_seconds >= 0
        assert config.synthesis_delay_seconds >= 0
