"""
Configuration loading for recipegraph.

Settings come from (highest precedence first):
1. values in an optional YAML file passed to load_settings()
2. environment variables (RECIPEGRAPH_*, plus MONGODB_URI) and .env
3. defaults below
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process settings for the loader and the query server."""

    model_config = SettingsConfigDict(
        env_prefix="RECIPEGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Document store
    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        validation_alias=AliasChoices("RECIPEGRAPH_MONGODB_URI", "MONGODB_URI", "mongodb_uri"),
    )
    database: str = "recipedb"
    collection: str = "recipes"

    # Loader
    data_dir: Path = Path("./data")

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    # Query limits
    max_depth: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    default_page_size: int = Field(default=20, ge=0)
    clamp_pagination: bool = False

    # Timeouts (seconds) and fan-out
    store_timeout: float = Field(default=5.0, gt=0)
    request_timeout: float = Field(default=30.0, gt=0)
    max_concurrency: int = Field(default=16, ge=1)

    @model_validator(mode="after")
    def check_page_sizes(self) -> "Settings":
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"default_page_size ({self.default_page_size}) exceeds max_page_size ({self.max_page_size})"
            )
        return self


def load_settings(path: Path | str | None = None, **overrides: Any) -> Settings:
    """
    Load settings, optionally seeded from a YAML file.

    Missing files are ignored so the same call works in every environment.
    """
    data: dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        if path.exists():
            data = yaml.safe_load(path.read_text()) or {}
    data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)


def save_settings(settings: Settings, path: Path | str = "recipegraph.yaml") -> None:
    """Save settings to a YAML file."""
    path = Path(path)
    content = yaml.dump(
        settings.model_dump(mode="json"), default_flow_style=False, sort_keys=False
    )
    path.write_text(content)


def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """Return ./recipegraph.yaml if present."""
    candidate = (start or Path.cwd()) / "recipegraph.yaml"
    return candidate if candidate.exists() else None
