"""SQLAlchemy table metadata for the apply ledger."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)

from catalogsync.domain.model import StoreKind
from catalogsync.domain.reconciliation.apply import ChangeOutcome

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

metadata = MetaData()


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


apply_run_table = Table(
    "apply_run",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("plan_id", String(64), nullable=False, index=True),
    Column("dry_run", Boolean, nullable=False, default=False),
    Column("planned", Integer, nullable=False, default=0),
    Column("started_at", UTCDateTime(), nullable=False),
    Column("finished_at", UTCDateTime(), nullable=True),
    Column("attempted", Integer, nullable=True),
    Column("succeeded", Integer, nullable=True),
    Column("skipped", Integer, nullable=True),
    Column("failed", Integer, nullable=True),
)

change_outcome_table = Table(
    "change_outcome",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("run_id", Integer, ForeignKey("apply_run.id", ondelete="CASCADE"), nullable=False),
    Column("plan_id", String(64), nullable=False),
    Column("change_id", String(32), nullable=False),
    Column("action", String(32), nullable=False),
    Column("target", Enum(StoreKind, native_enum=False), nullable=False),
    Column("record_key", String, nullable=False),
    Column("field", String(32), nullable=True),
    Column("variant", String(32), nullable=True),
    Column("value", Text, nullable=True),
    Column("outcome", Enum(ChangeOutcome, native_enum=False), nullable=False),
    Column("message", Text, nullable=True),
    Column("recorded_at", UTCDateTime(), nullable=False),
    Index("ix_change_outcome_plan_change", "plan_id", "change_id", "outcome"),
)


def create_all_tables(engine: Engine) -> None:
    """Create ledger tables that do not exist yet."""

    log.info("Creating ledger tables")
    metadata.create_all(engine)
