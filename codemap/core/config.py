"""Configuration loaded from environment variables."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ArityMatching(str, Enum):
    """How clauses without arity information are matched during traversal."""

    PERMISSIVE = "permissive"
    STRICT = "strict"


class Settings(BaseSettings):
    """Central configuration for codemap. Reads CODEMAP_* variables and .env."""

    model_config = SettingsConfigDict(
        env_prefix="CODEMAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Directory of quoted-AST JSON dumps
    source_dir: Path = Path(".codemap") / "ast"

    log_level: str = "WARNING"

    arity_matching: ArityMatching = ArityMatching.PERMISSIVE

    # Traversal budgets, None means unbounded
    max_nodes: int | None = None
    max_edges: int | None = None

    # Module assigned to calls made through a runtime value
    unknown_module: str = "?"

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("max_nodes", "max_edges")
    @classmethod
    def _positive_budget(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError("budget must be at least 1")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings, loaded once."""
    return Settings()
