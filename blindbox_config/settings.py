"""
Application settings read from the environment.

Every variable is optional:

    BLINDBOX_DATABASE_URL      SQLAlchemy URL; empty selects in-memory stores
    BLINDBOX_CATALOG_PATH      catalog YAML (default: sets/default_catalog.yaml)
    BLINDBOX_LOG_LEVEL         DEBUG / INFO / WARNING / ERROR (default INFO)
    BLINDBOX_SEED_ON_STARTUP   replace the catalog from YAML at startup (default on)
    BLINDBOX_RESET_BACKPACK    clear the backpack at startup (default on)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from blindbox_config.loader import DEFAULT_CATALOG_PATH

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: str | None, default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class AppSettings:
    """Process settings. Built once at startup."""

    database_url: str | None = None
    catalog_path: Path = DEFAULT_CATALOG_PATH
    log_level: str = "INFO"
    seed_on_startup: bool = True
    reset_backpack: bool = True

    @property
    def uses_database(self) -> bool:
        return bool(self.database_url)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AppSettings:
        env = os.environ if environ is None else environ
        catalog = env.get("BLINDBOX_CATALOG_PATH")
        return cls(
            database_url=env.get("BLINDBOX_DATABASE_URL") or None,
            catalog_path=Path(catalog) if catalog else DEFAULT_CATALOG_PATH,
            log_level=(env.get("BLINDBOX_LOG_LEVEL") or "INFO").upper(),
            seed_on_startup=_parse_bool(
                "BLINDBOX_SEED_ON_STARTUP", env.get("BLINDBOX_SEED_ON_STARTUP"), True
            ),
            reset_backpack=_parse_bool(
                "BLINDBOX_RESET_BACKPACK", env.get("BLINDBOX_RESET_BACKPACK"), True
            ),
        )
