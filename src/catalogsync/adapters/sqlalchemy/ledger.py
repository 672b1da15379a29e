"""SQLAlchemy-backed apply ledger."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, insert, select, update
from sqlalchemy.orm import Session, sessionmaker

from catalogsync.config.storage import get_ledger_uri
from catalogsync.domain.reconciliation.apply import ChangeOutcome
from catalogsync.domain.reconciliation.plan import FieldChange

from .tables import apply_run_table, change_outcome_table, create_all_tables

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from catalogsync.domain.reconciliation.apply import ApplyResult
    from catalogsync.domain.reconciliation.plan import PlannedChange, ReconciliationPlan


class StartupError(RuntimeError):
    """Raised when the ledger is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "Ledger not initialised. Call catalogsync.adapters.sqlalchemy."
                "ledger.startup() before recording apply runs."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the ledger engine, tables and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError("Ledger already initialised. Pass force=True to reconfigure.")

    resolved_engine = engine or create_engine(
        database_uri or get_ledger_uri(), future=True
    )
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


def _now() -> datetime:
    return datetime.now(UTC)


class SqlAlchemyApplyLedger:
    """Record apply runs and per-change outcomes in SQL tables."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self.session_factory: sessionmaker[Session] = session_factory or _STATE.session_factory

    def start_run(self, plan: ReconciliationPlan, *, dry_run: bool) -> int:
        with self.session_factory.begin() as session:
            result = session.execute(
                insert(apply_run_table).values(
                    plan_id=plan.plan_id,
                    dry_run=dry_run,
                    planned=len(plan.changes),
                    started_at=_now(),
                )
            )
            run_id = result.inserted_primary_key[0] if result.inserted_primary_key else None
        if run_id is None:
            raise StartupError("Ledger did not return an apply run id")
        return int(run_id)

    def succeeded_change_ids(self, plan_id: str) -> set[str]:
        with self.session_factory() as session:
            rows = session.execute(
                select(change_outcome_table.c.change_id).where(
                    change_outcome_table.c.plan_id == plan_id,
                    change_outcome_table.c.outcome == ChangeOutcome.SUCCEEDED,
                )
            )
            return {row.change_id for row in rows}

    def record_outcome(
        self,
        run_id: int,
        change: PlannedChange,
        outcome: ChangeOutcome,
        *,
        message: str | None = None,
    ) -> None:
        plan_id = self._plan_id_for_run(run_id)
        is_field_change = isinstance(change, FieldChange)
        with self.session_factory.begin() as session:
            session.execute(
                insert(change_outcome_table).values(
                    run_id=run_id,
                    plan_id=plan_id,
                    change_id=change.change_id,
                    action=change.action.value,
                    target=change.target,
                    record_key=change.record_key,
                    field=change.field.value if is_field_change else None,
                    variant=change.variant if is_field_change else None,
                    value=json.dumps(change.value) if is_field_change else None,
                    outcome=outcome,
                    message=message,
                    recorded_at=_now(),
                )
            )

    def finish_run(self, run_id: int, result: ApplyResult) -> None:
        with self.session_factory.begin() as session:
            session.execute(
                update(apply_run_table)
                .where(apply_run_table.c.id == run_id)
                .values(
                    finished_at=_now(),
                    attempted=result.attempted,
                    succeeded=result.succeeded,
                    skipped=result.skipped,
                    failed=result.failed,
                )
            )

    def outcomes_for_plan(self, plan_id: str) -> list[tuple[str, ChangeOutcome]]:
        """``(change_id, outcome)`` for every recorded attempt of ``plan_id``, oldest first."""

        with self.session_factory() as session:
            rows = session.execute(
                select(change_outcome_table.c.change_id, change_outcome_table.c.outcome)
                .where(change_outcome_table.c.plan_id == plan_id)
                .order_by(change_outcome_table.c.id)
            )
            return [(row.change_id, row.outcome) for row in rows]

    def _plan_id_for_run(self, run_id: int) -> str:
        with self.session_factory() as session:
            plan_id = session.execute(
                select(apply_run_table.c.plan_id).where(apply_run_table.c.id == run_id)
            ).scalar_one_or_none()
        if plan_id is None:
            raise StartupError(f"Unknown apply run {run_id}")
        return plan_id


if TYPE_CHECKING:
    from catalogsync.domain.ports import ApplyLedger

    _ledger_check: ApplyLedger = SqlAlchemyApplyLedger()
