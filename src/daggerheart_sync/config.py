"""
Runtime configuration for the sync pipeline.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator


DEFAULT_API_URL = "https://daggerheart.su/api"

# Endpoints of the data source, in the order the pipeline consumes them.
API_ENDPOINTS: tuple[str, ...] = (
    "class",
    "subclass",
    "ancestry",
    "community",
    "domain-card",
    "equipment",
    "beastform",
    "transformation",
    "adversary",
    "environment",
    "rule",
)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip() == "1"


class SyncConfig(BaseModel):
    """Filesystem layout and behaviour switches for one pipeline run.

    Directories left unset are derived from ``base_dir``:
    ``tmp_data/api`` for the source cache, ``module/translations`` for the
    destination files and ``original`` for the previous-revision snapshot.
    """

    base_dir: Path = Field(default_factory=Path.cwd, description="Project root")
    cache_dir: Path | None = Field(default=None, description="API cache root (<lang>/<endpoint>.json)")
    translations_dir: Path | None = Field(default=None, description="Destination translation files")
    original_dir: Path | None = Field(default=None, description="Previous-revision snapshot of destination files")
    languages: tuple[str, str] = Field(default=("ru", "en"), description="Target and source language codes")
    api_base_url: str = Field(default=DEFAULT_API_URL, description="Base URL of the data source")
    request_timeout: float = Field(default=30.0, gt=0.0, description="HTTP timeout in seconds")
    quiet: bool = Field(default=False, description="Suppress non-essential output")
    skip_api_refresh: bool = Field(default=False, description="Keep the cached API data as is")

    @model_validator(mode="after")
    def _derive_directories(self) -> "SyncConfig":
        if self.cache_dir is None:
            self.cache_dir = self.base_dir / "tmp_data" / "api"
        if self.translations_dir is None:
            self.translations_dir = self.base_dir / "module" / "translations"
        if self.original_dir is None:
            self.original_dir = self.base_dir / "original"
        return self

    @classmethod
    def from_env(cls, **overrides) -> "SyncConfig":
        """Build a config from the process environment (and ``.env`` if present)."""
        load_dotenv()
        values: dict = {
            "quiet": _env_flag("UPDATE_TRANSLATIONS_QUIET"),
            "skip_api_refresh": _env_flag("SKIP_API_REFRESH"),
        }
        base_dir = os.getenv("DAGGERHEART_SYNC_BASE_DIR")
        if base_dir:
            values["base_dir"] = Path(base_dir).resolve()
        api_url = os.getenv("DAGGERHEART_API_URL")
        if api_url:
            values["api_base_url"] = api_url.rstrip("/")
        values.update(overrides)
        return cls(**values)
