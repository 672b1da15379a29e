"""Port for recording apply outcomes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from catalogsync.domain.reconciliation.apply import ApplyResult, ChangeOutcome
    from catalogsync.domain.reconciliation.plan import PlannedChange, ReconciliationPlan


@runtime_checkable
class ApplyLedger(Protocol):
    """Audit log of apply runs, used to resume interrupted plans."""

    def start_run(self, plan: ReconciliationPlan, *, dry_run: bool) -> int: ...

    def succeeded_change_ids(self, plan_id: str) -> set[str]: ...

    def record_outcome(
        self,
        run_id: int,
        change: PlannedChange,
        outcome: ChangeOutcome,
        *,
        message: str | None = None,
    ) -> None: ...

    def finish_run(self, run_id: int, result: ApplyResult) -> None: ...
