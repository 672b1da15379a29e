from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from catalogsync.adapters.sqlalchemy import create_all_tables, shutdown, startup
from catalogsync.domain.reconciliation import NameOverride, ReconciliationPolicy

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def policy() -> ReconciliationPolicy:
    return ReconciliationPolicy(
        overrides=(
            NameOverride(content_name="White Musk", commerce_name="Musk Tahara"),
            NameOverride(content_name="Mukhallat Shifa", commerce_name="Mukhallat Al-Shifa"),
        )
    )


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session_factory(sqlite_engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=sqlite_engine, expire_on_commit=False)


@pytest.fixture
def started_ledger(sqlite_engine: Engine) -> Iterator[Engine]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield sqlite_engine
    finally:
        shutdown()


@pytest.fixture(autouse=True)
def _isolated_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> None:
    data_dir = tmp_path_factory.mktemp("catalogsync-data")
    monkeypatch.setenv("CATALOGSYNC_DATA_DIR", str(data_dir))
    monkeypatch.delenv("CATALOGSYNC_CONFIG", raising=False)
    monkeypatch.delenv("CATALOGSYNC_LEDGER_URI", raising=False)
