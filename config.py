"""Configuration settings for the suggestion engine."""

import tomllib
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine configuration from environment variables."""

    # Suggestion timing
    suggestion_debounce_ms: int = 600

    # Generation settings
    suggestion_model: str = "haiku"
    suggestion_max_output_tokens: int = 60
    suggestion_temperature: float = 0.3
    suggestion_context_messages: int = 4

    # Inputs longer than this never get a suggestion
    suggestion_max_input_length: int = 50

    # Cache settings
    suggestion_cache_max_size: int = 50
    suggestion_cache_expiry_ms: int = 120000

    # Backend request timeout override (otherwise per-model defaults apply)
    completion_timeout_ms: Optional[int] = None

    # Logging settings
    log_retention_days: int = 7
    log_dir: Optional[str] = None
    log_to_file: bool = True

    class Config:
        env_prefix = ""
        case_sensitive = False


# Singleton settings instance
settings = Settings()


def get_version() -> str:
    """Read version from pyproject.toml."""
    try:
        pyproject_path = Path(__file__).parent / "pyproject.toml"
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
        return data.get("project", {}).get("version", "unknown")
    except (OSError, tomllib.TOMLDecodeError):
        return "unknown"


# Engine version (read from pyproject.toml)
VERSION = get_version()
