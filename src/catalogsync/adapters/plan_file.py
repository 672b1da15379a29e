"""JSON files for reconciliation plans, apply results and run summaries."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from catalogsync.domain.reconciliation.apply import ApplyResult
from catalogsync.domain.reconciliation.plan import ReconciliationPlan

if TYPE_CHECKING:
    from collections.abc import Mapping

log = logging.getLogger(__name__)

_PLAN_ADAPTER = TypeAdapter(ReconciliationPlan)
_RESULT_ADAPTER = TypeAdapter(ApplyResult)
_SUMMARY_ADAPTER = TypeAdapter(dict[str, int])


class PlanFileError(RuntimeError):
    """Raised when a plan file cannot be read or does not hold a valid plan."""


def dump_plan(plan: ReconciliationPlan) -> bytes:
    return _PLAN_ADAPTER.dump_json(plan, indent=2)


def load_plan(data: bytes | str) -> ReconciliationPlan:
    try:
        return _PLAN_ADAPTER.validate_json(data)
    except PydanticValidationError as exc:
        raise PlanFileError(f"Invalid plan file: {exc}") from exc


def default_plan_path(plans_dir: Path, plan: ReconciliationPlan) -> Path:
    stamp = plan.created_at.strftime("%Y%m%dT%H%M%SZ")
    return plans_dir / f"plan-{stamp}-{plan.plan_id[:8]}.json"


def write_plan(plan: ReconciliationPlan, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dump_plan(plan))
    log.info("Wrote plan %s (%d change(s)) to %s", plan.plan_id, len(plan.changes), path)
    return path


def read_plan(path: Path) -> ReconciliationPlan:
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise PlanFileError(f"Cannot read plan file {path}: {exc}") from exc
    plan = load_plan(data)
    log.info("Loaded plan %s (%d change(s)) from %s", plan.plan_id, len(plan.changes), path)
    return plan


def dump_result(result: ApplyResult) -> bytes:
    return _RESULT_ADAPTER.dump_json(result, indent=2)


def write_summary(summary: Mapping[str, int], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(_SUMMARY_ADAPTER.dump_json(dict(summary), indent=2))
    return path


def read_summary(path: Path) -> dict[str, int]:
    try:
        return _SUMMARY_ADAPTER.validate_json(Path(path).read_bytes())
    except (OSError, PydanticValidationError) as exc:
        raise PlanFileError(f"Cannot read summary file {path}: {exc}") from exc
