"""Where catalogsync keeps its ledger, HTTP cache and saved plans."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "catalogsync"
LEDGER_FILENAME: Final[str] = "ledger.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"
PLANS_DIR_NAME: Final[str] = "plans"

DATA_DIR_ENV_VAR: Final[str] = "CATALOGSYNC_DATA_DIR"
LEDGER_URI_ENV_VAR: Final[str] = "CATALOGSYNC_LEDGER_URI"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Layout of the data directory; accessors create what they return unless told not to."""

    data_dir: Path

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ledger_path(self, *, ensure: bool = True) -> Path:
        return self._root(ensure=ensure) / LEDGER_FILENAME

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        return self._root(ensure=ensure) / HTTP_CACHE_FILENAME

    def plans_dir(self, *, ensure: bool = True) -> Path:
        plans = self.resolve_data_dir() / PLANS_DIR_NAME
        if ensure:
            plans.mkdir(parents=True, exist_ok=True)
        return plans

    def _root(self, *, ensure: bool) -> Path:
        root = self.resolve_data_dir()
        if ensure:
            root.mkdir(parents=True, exist_ok=True)
        return root


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv(DATA_DIR_ENV_VAR)
    return StorageConfig(data_dir=Path(env_dir) if env_dir else _default_data_dir())


def get_ledger_uri(*, storage: StorageConfig | None = None) -> str:
    """SQLAlchemy URI of the apply ledger; ``CATALOGSYNC_LEDGER_URI`` wins over the data dir."""

    env_uri = os.getenv(LEDGER_URI_ENV_VAR)
    if env_uri:
        return env_uri
    ledger = (storage or get_storage_config()).ledger_path()
    return f"sqlite+pysqlite:///{ledger}"
