"""Secure secret loading for production deployment."""
from pathlib import Path
import os
from typing import Optional


def get_secret(secret_name: str, env_fallback: Optional[str] = None) -> str:
    """
    Load secret from Podman/Docker mount or environment variable.

    Priority:
    1. /run/secrets/{secret_name} (Podman/Docker secret mount)
    2. Environment variable (dev convenience)

    Args:
        secret_name: Name of the secret (e.g., 'github_token')
        env_fallback: Environment variable name to check if secret file not found

    Returns:
        Secret value

    Raises:
        ValueError: If secret not found in either location
    """
    secret_path = Path(f"/run/secrets/{secret_name}")
    if secret_path.exists():
        try:
            return secret_path.read_text().strip()
        except IOError as e:
            raise ValueError(f"Secret file exists but cannot be read: {secret_path}") from e

    if env_fallback:
        value = os.getenv(env_fallback)
        if value:
            return value

    raise ValueError(
        f"Secret '{secret_name}' not found. "
        f"Expected at {secret_path} or env var {env_fallback}"
    )


def get_optional_secret(secret_name: str, env_fallback: Optional[str] = None) -> Optional[str]:
    """Like get_secret, but returns None when the secret is not configured."""
    configured = Path(f"/run/secrets/{secret_name}").exists() or (
        env_fallback is not None and bool(os.getenv(env_fallback))
    )
    if not configured:
        return None
    return get_secret(secret_name, env_fallback)


def get_github_token() -> Optional[str]:
    """GitHub token; None means unauthenticated access."""
    return get_optional_secret("github_token", "GITHUB_TOKEN")


def get_openrouter_key() -> Optional[str]:
    """OpenRouter API key; None disables the OpenRouter provider."""
    return get_optional_secret("openrouter_api_key", "OPENROUTER_API_KEY")
