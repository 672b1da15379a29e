"""Human-readable rendering of plans, apply results and summaries."""

# ruff: noqa: T201

from __future__ import annotations

import sys
from collections import Counter
from typing import TYPE_CHECKING, TextIO

from catalogsync.domain.model import StoreKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from catalogsync.app import ApplyOutcome
    from catalogsync.domain.reconciliation import ChangeFailure, ReconciliationPlan

SUMMARY_ORDER = (
    "matched",
    "suggested",
    "unmatched",
    "ambiguous",
    "duplicate",
    "orphaned",
    "asymmetric",
    "planned",
    "issues",
    "attempted",
    "succeeded",
    "skipped",
    "failed",
    "missing",
)


def plan_lines(plan: ReconciliationPlan) -> list[str]:
    lines = [
        f"Plan {plan.plan_id} ({plan.created_at:%Y-%m-%d %H:%M:%S} UTC)",
        f"  {len(plan.changes)} change(s), {len(plan.issues)} issue(s)",
    ]
    for target in StoreKind:
        changes = plan.changes_for(target)
        if not changes:
            continue
        lines.append(f"{target} ({len(changes)}):")
        lines.extend(f"  {change.describe()}" for change in changes)

    if plan.issues:
        kinds = Counter(issue.kind for issue in plan.issues)
        lines.append(
            "Issues: " + ", ".join(f"{kind}={count}" for kind, count in sorted(kinds.items()))
        )
        lines.extend(
            f"  [{issue.kind}] {issue.message} ({', '.join(issue.record_keys)})"
            for issue in plan.issues
        )
    return lines


def _failure_lines(title: str, failures: Iterable[ChangeFailure]) -> list[str]:
    entries = [
        f"  {failure.target}:{failure.record_key} [{failure.reason}] {failure.message}"
        for failure in failures
    ]
    return [title, *entries] if entries else []


def apply_lines(outcome: ApplyOutcome) -> list[str]:
    if outcome.dry_run:
        header = f"Dry run of plan {outcome.plan.plan_id}: {len(outcome.rendered)} mutation(s)"
        return [header, *(f"  {line}" for line in outcome.rendered)]

    result = outcome.result
    lines = [
        f"Applied plan {outcome.plan.plan_id}: attempted={result.attempted} "
        f"succeeded={result.succeeded} skipped={result.skipped} failed={result.failed}"
    ]
    lines.extend(_failure_lines("Failed:", result.failures))
    lines.extend(_failure_lines("Missing records:", result.missing))
    return lines


def summary_lines(counts: Mapping[str, int]) -> list[str]:
    known = [name for name in SUMMARY_ORDER if name in counts]
    extra = sorted(set(counts) - set(SUMMARY_ORDER))
    width = max((len(name) for name in (*known, *extra)), default=0)
    return [f"{name:<{width}}  {counts[name]}" for name in (*known, *extra)]


def emit(lines: Iterable[str], stream: TextIO | None = None) -> None:
    out = stream or sys.stdout
    for line in lines:
        print(line, file=out)
