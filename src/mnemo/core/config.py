"""
Configuration management.

Loads settings from environment variables and .env file.
Prefix: MNEMO_
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MNEMO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Storage
    data_dir: Path = Field(default=Path("data"), description="Data storage directory")
    db_name: str = Field(default="memory.db", description="SQLite database name")

    # Embeddings (semantic search is disabled when no key is set)
    openai_api_key: str = Field(
        default="",
        description="Embedding provider API key",
        validation_alias=AliasChoices("MNEMO_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    embedding_model: str = Field(
        default="text-embedding-3-small", description="Embedding model name"
    )
    embedding_api_base: str | None = Field(
        default=None, description="Override embedding endpoint (OpenAI-compatible)"
    )

    # Decay
    decay_policy: Literal["exponential", "linear"] = Field(
        default="exponential", description="Importance decay curve"
    )
    decay_half_life_days: float = Field(
        default=30.0, gt=0, description="Half-life for exponential decay"
    )
    decay_rate: float = Field(
        default=0.01, ge=0, le=1, description="Importance lost per idle day (linear)"
    )
    decay_floor: float = Field(
        default=0.1, ge=0, le=1, description="Decay never goes below this"
    )

    # Search
    search_overfetch: int = Field(
        default=3, ge=1, description="Candidate pool multiplier for re-ranking"
    )

    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


def get_settings() -> Settings:
    """Get settings instance from the environment."""
    return Settings()
