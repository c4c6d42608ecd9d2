"""Bate-papo application configuration.

Loads settings from a single YAML file:
  * batepapo.settings.yaml  (server, logging, store and presence settings)

The path can be overridden with the BATEPAPO_SETTINGS environment variable.
A missing file is not an error; every section has working defaults.
"""
from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("batepapo.settings.yaml")
SETTINGS_ENV_VAR = "BATEPAPO_SETTINGS"

IN_MEMORY_DB = ":memory:"


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 5000


class LoggingSettings(BaseModel):
    level: str = "info"


class StoreSettings(BaseModel):
    """Location of the DuckDB document store."""
    path: str = "batepapo.duckdb"


class PresenceSettings(BaseModel):
    """Liveness policy shared by the status ping and the inactivity reaper.

    A participant whose last ping is older than ``idle_timeout_seconds`` is
    evicted by the next sweep, and sweeps run every
    ``sweep_interval_seconds``. Eviction can therefore lag by up to one
    sweep interval.
    """
    idle_timeout_seconds:   float = Field(default=10, gt=0)
    sweep_interval_seconds: float = Field(default=15, gt=0)
    reaper_enabled:         bool  = True
    name_match:             Literal["exact", "contains"] = "exact"


class AppConfig(BaseModel):
    server:   ServerSettings   = Field(default_factory=ServerSettings)
    logging:  LoggingSettings  = Field(default_factory=LoggingSettings)
    store:    StoreSettings    = Field(default_factory=StoreSettings)
    presence: PresenceSettings = Field(default_factory=PresenceSettings)

    # Directory the settings file was read from; relative store paths
    # resolve against it.
    base_dir: Optional[Path] = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def _resolve_store_path(self) -> "AppConfig":
        path = self.store.path
        if path == IN_MEMORY_DB or self.base_dir is None:
            return self
        if not Path(path).is_absolute():
            self.store.path = str(self.base_dir / path)
        return self


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_config(settings_path: Optional[Path] = None) -> AppConfig:
    """Load settings into a single *AppConfig* object."""
    if settings_path is None:
        settings_path = Path(os.environ.get(SETTINGS_ENV_VAR, SETTINGS_FILE))
    settings_path = Path(settings_path)

    data = _load_yaml(settings_path)
    data["base_dir"] = settings_path.resolve().parent

    config = AppConfig(**data)
    logger.info(
        "Settings loaded (server=%s:%s, store=%s, idle_timeout=%ss, sweep_interval=%ss)",
        config.server.host,
        config.server.port,
        config.store.path,
        config.presence.idle_timeout_seconds,
        config.presence.sweep_interval_seconds,
    )
    return config


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Return the process-wide configuration, loading it on first use."""
    return load_config()
