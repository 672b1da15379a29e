"""Plan execution.

Responsibilities of this stage:
- execute changes sequentially, in plan order
- re-read each target value first and skip changes that are already satisfied
- isolate failures per change; one failed write never stops the run
- record every outcome in the apply ledger when one is configured

Dry runs render the store-specific mutations without performing any I/O.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from catalogsync.domain.errors import NotFoundError, ReconciliationError
from catalogsync.domain.model import FieldName, StoreKind  # noqa: TC001

from .normalize import normalize_group
from .plan import RecordDeletion

if TYPE_CHECKING:
    from collections.abc import Mapping

    from catalogsync.domain.ports import ApplyLedger, CatalogStore

    from .plan import FieldChange, FieldValue, PlannedChange, ReconciliationPlan

log = logging.getLogger(__name__)


class ChangeOutcome(StrEnum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True, kw_only=True)
class ChangeFailure:
    """A change that could not be applied, with the error category that stopped it."""

    change_id: str
    target: StoreKind
    record_key: str
    reason: str
    message: str


@dataclass(slots=True)
class ApplyResult:
    """Summary of one apply run."""

    plan_id: str | None = None
    attempted: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    failures: list[ChangeFailure] = field(default_factory=list[ChangeFailure])
    missing: list[ChangeFailure] = field(default_factory=list[ChangeFailure])

    @property
    def ok(self) -> bool:
        return self.failed == 0


def _failure(change: PlannedChange, exc: ReconciliationError) -> ChangeFailure:
    return ChangeFailure(
        change_id=change.change_id,
        target=change.target,
        record_key=change.record_key,
        reason=exc.kind,
        message=str(exc),
    )


class ApplyPlan(Protocol):
    """Execute a reconciliation plan against the stores."""

    def __call__(self, plan: ReconciliationPlan) -> ApplyResult: ...


def is_satisfied(change: FieldChange, current: FieldValue) -> bool:
    """Whether the store already holds what ``change`` would write."""

    if change.field is FieldName.MEDIA:
        # Media is only ever filled in, never replaced.
        return current is not None
    if change.field is FieldName.COLLECTION_GROUP and isinstance(current, str):
        return isinstance(change.value, str) and normalize_group(current) == normalize_group(
            change.value
        )
    return current == change.value


@dataclass(slots=True)
class ChangeApplier:
    """Sequential applier over one store per ``StoreKind``."""

    stores: Mapping[StoreKind, CatalogStore]
    ledger: ApplyLedger | None = None

    def __call__(self, plan: ReconciliationPlan) -> ApplyResult:
        result = ApplyResult(plan_id=plan.plan_id)
        already_applied = (
            self.ledger.succeeded_change_ids(plan.plan_id) if self.ledger is not None else set()
        )
        run_id = self.ledger.start_run(plan, dry_run=False) if self.ledger is not None else None
        total = len(plan.changes)

        for index, change in enumerate(plan.changes, start=1):
            result.attempted += 1
            if change.change_id in already_applied:
                result.skipped += 1
                log.info("[%d/%d] skipped (applied earlier): %s", index, total, change.describe())
                self._record(run_id, change, ChangeOutcome.SKIPPED, "applied in an earlier run")
                continue

            try:
                written = self._apply_change(self.stores[change.target], change)
            except NotFoundError as exc:
                result.skipped += 1
                result.missing.append(_failure(change, exc))
                log.warning(
                    "[%d/%d] skipped (record vanished): %s: %s",
                    index,
                    total,
                    change.describe(),
                    exc,
                )
                self._record(run_id, change, ChangeOutcome.SKIPPED, f"{exc.kind}: {exc}")
                continue
            except ReconciliationError as exc:
                result.failed += 1
                result.failures.append(_failure(change, exc))
                log.warning(
                    "[%d/%d] failed (%s): %s: %s",
                    index,
                    total,
                    exc.kind,
                    change.describe(),
                    exc,
                )
                self._record(run_id, change, ChangeOutcome.FAILED, f"{exc.kind}: {exc}")
                continue

            if written:
                result.succeeded += 1
                log.info("[%d/%d] applied: %s", index, total, change.describe())
                self._record(run_id, change, ChangeOutcome.SUCCEEDED, None)
            else:
                result.skipped += 1
                log.info("[%d/%d] skipped (already satisfied): %s", index, total, change.describe())
                self._record(run_id, change, ChangeOutcome.SKIPPED, "already satisfied")

        if self.ledger is not None and run_id is not None:
            self.ledger.finish_run(run_id, result)
        log.info(
            "Apply finished: attempted=%d succeeded=%d skipped=%d failed=%d",
            result.attempted,
            result.succeeded,
            result.skipped,
            result.failed,
        )
        return result

    def dry_run(self, plan: ReconciliationPlan) -> list[str]:
        """Render each planned mutation in order without touching either store."""

        rendered: list[str] = []
        for change in plan.changes:
            store = self.stores.get(change.target)
            rendered.append(store.describe(change) if store is not None else change.describe())
        if self.ledger is not None:
            run_id = self.ledger.start_run(plan, dry_run=True)
            self.ledger.finish_run(run_id, ApplyResult(plan_id=plan.plan_id))
        return rendered

    def _apply_change(self, store: CatalogStore, change: PlannedChange) -> bool:
        if isinstance(change, RecordDeletion):
            try:
                store.delete_record(change)
            except NotFoundError:
                log.info("Record %s already gone", change.record_key)
                return False
            return True

        current = store.read_field(change)
        if is_satisfied(change, current):
            return False
        store.write_field(change)
        return True

    def _record(
        self,
        run_id: int | None,
        change: PlannedChange,
        outcome: ChangeOutcome,
        message: str | None,
    ) -> None:
        if self.ledger is None or run_id is None:
            return
        self.ledger.record_outcome(run_id, change, outcome, message=message)

