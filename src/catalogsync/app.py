"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.adapters.plan_file import (
    default_plan_path,
    read_plan,
    read_summary,
    write_plan,
    write_summary,
)
from catalogsync.adapters.sanity import SanityCatalogStore
from catalogsync.adapters.shopify import ShopifyCatalogStore
from catalogsync.adapters.sqlalchemy import SqlAlchemyApplyLedger, is_started, startup
from catalogsync.config import get_reconciliation_policy, get_storage_config
from catalogsync.domain.model import StoreKind
from catalogsync.domain.reconciliation import ApplyResult, ReconciliationEngine

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from catalogsync.domain.ports import ApplyLedger, CatalogStore
    from catalogsync.domain.reconciliation import ReconciliationPlan, ReconciliationPolicy


log = getLogger(__name__)

RESULT_COUNTERS = ("attempted", "succeeded", "skipped", "failed")


@dataclass(slots=True)
class ApplyOutcome:
    plan: ReconciliationPlan
    result: ApplyResult
    rendered: list[str] = field(default_factory=list[str])
    dry_run: bool = False


def build_stores() -> dict[StoreKind, CatalogStore]:
    """Create both store adapters from the environment configuration."""

    return {
        StoreKind.CONTENT: SanityCatalogStore(),
        StoreKind.COMMERCE: ShopifyCatalogStore(),
    }


def build_engine(
    *,
    stores: Mapping[StoreKind, CatalogStore] | None = None,
    policy: ReconciliationPolicy | None = None,
    ledger: ApplyLedger | None = None,
    config_path: Path | None = None,
) -> ReconciliationEngine:
    return ReconciliationEngine(
        stores=stores if stores is not None else build_stores(),
        policy=policy if policy is not None else get_reconciliation_policy(config_path),
        ledger=ledger,
    )


def plan_catalog(
    *,
    engine: ReconciliationEngine | None = None,
    output: Path | None = None,
    config_path: Path | None = None,
) -> tuple[ReconciliationPlan, Path]:
    """Compute a plan from both stores and save it as a JSON file."""

    effective_engine = engine or build_engine(config_path=config_path)
    plan = effective_engine.plan()
    path = output or default_plan_path(get_storage_config().plans_dir(), plan)
    write_plan(plan, path)
    log.info(
        "Planned %d change(s) with %d issue(s); plan id %s",
        len(plan.changes),
        len(plan.issues),
        plan.plan_id,
    )
    return plan, path


def apply_catalog(
    *,
    engine: ReconciliationEngine | None = None,
    plan_path: Path | None = None,
    dry_run: bool = False,
    config_path: Path | None = None,
) -> ApplyOutcome:
    """Apply a saved plan, or a freshly computed one when no plan file is given."""

    if engine is None:
        if not is_started():
            startup()
        engine = build_engine(ledger=SqlAlchemyApplyLedger(), config_path=config_path)

    plan = read_plan(plan_path) if plan_path is not None else engine.plan()
    if dry_run:
        log.info("Dry run of plan %s (%d change(s))", plan.plan_id, len(plan.changes))
        rendered = engine.dry_run(plan)
        return ApplyOutcome(
            plan=plan,
            result=ApplyResult(plan_id=plan.plan_id),
            rendered=rendered,
            dry_run=True,
        )

    log.info("Applying plan %s (%d change(s))", plan.plan_id, len(plan.changes))
    result = engine.apply(plan)
    return ApplyOutcome(plan=plan, result=result)


def summary_counts(plan: ReconciliationPlan, result: ApplyResult | None = None) -> dict[str, int]:
    """Flatten resolution counts, planned changes and apply counters into one mapping."""

    counts = dict(plan.summary)
    counts.setdefault("planned", len(plan.changes))
    counts["issues"] = len(plan.issues)
    applied = result or ApplyResult(plan_id=plan.plan_id)
    for name in RESULT_COUNTERS:
        counts[name] = getattr(applied, name)
    counts["missing"] = len(applied.missing)
    return counts


def save_summary(counts: Mapping[str, int], path: Path) -> Path:
    write_summary(counts, path)
    log.info("Wrote summary to %s", path)
    return path


def summarize_plan(path: Path) -> dict[str, int]:
    return summary_counts(read_plan(path))


def load_summary(path: Path) -> dict[str, int]:
    """Counts saved by an earlier `apply --summary-json` run."""

    return read_summary(path)
