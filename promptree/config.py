"""Runtime configuration read from the environment (and a .env file)."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# load environment variables
load_dotenv()

MIN_RESPONSE_COUNT = 1
MAX_RESPONSE_COUNT = 5


@dataclass(frozen=True)
class Settings:
    """Settings for generation backends and the service."""

    provider: str = "offline"  # "openai", "anthropic", "offline"
    model: str = "gpt-4o-mini"
    response_count: int = 3
    max_tokens: int | None = None
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = ("*",)
    openai_api_key: str | None = None
    anthropic_api_key: str | None = None


def _int_or_none(value: str | None) -> int | None:
    if value is None or value.strip() == "":
        return None
    return int(value)


def get_settings() -> Settings:
    """Build settings from the current environment."""
    response_count = int(os.getenv("PROMPTREE_RESPONSE_COUNT", "3"))
    if not MIN_RESPONSE_COUNT <= response_count <= MAX_RESPONSE_COUNT:
        raise ValueError(
            f"PROMPTREE_RESPONSE_COUNT must be between {MIN_RESPONSE_COUNT} "
            f"and {MAX_RESPONSE_COUNT}, got {response_count}"
        )

    return Settings(
        provider=os.getenv("PROMPTREE_PROVIDER", "offline").lower(),
        model=os.getenv("PROMPTREE_MODEL", "gpt-4o-mini"),
        response_count=response_count,
        max_tokens=_int_or_none(os.getenv("PROMPTREE_MAX_TOKENS")),
        log_level=os.getenv("PROMPTREE_LOG_LEVEL", "INFO").upper(),
        # comma-separated values for multiple origins, or "*" for all
        cors_origins=tuple(os.getenv("CORS_ORIGINS", "*").split(",")),
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
    )
