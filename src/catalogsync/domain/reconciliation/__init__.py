"""Reconciliation subsystem.

This package hosts the stage contracts and implementations that keep product
records consistent between the content and commerce stores:

``deduplicate`` -> ``resolve`` -> ``diff`` (plan) -> ``apply``
"""

from __future__ import annotations

from .apply import ApplyPlan, ApplyResult, ChangeApplier, ChangeFailure, ChangeOutcome
from .contracts import IssueKind, PlanIssue, RecordPair, ResolutionReport
from .deduplicate import DeduplicationResult, deduplicate_records, fold_revisions
from .diff import ReconcileFields, build_plan
from .engine import ReconciliationEngine
from .normalize import normalize_name, normalize_price, normalize_size
from .plan import (
    ChangeAction,
    FieldChange,
    FieldValue,
    PlannedChange,
    ReconciliationPlan,
    RecordDeletion,
)
from .policy import NameOverride, ReconciliationPolicy
from .resolve import ResolveIdentities, resolve_identities
from .skus import generate_sku, validate_sku

__all__ = [
    "ApplyPlan",
    "ApplyResult",
    "ChangeAction",
    "ChangeApplier",
    "ChangeFailure",
    "ChangeOutcome",
    "DeduplicationResult",
    "FieldChange",
    "FieldValue",
    "IssueKind",
    "NameOverride",
    "PlanIssue",
    "PlannedChange",
    "ReconcileFields",
    "ReconciliationEngine",
    "ReconciliationPlan",
    "ReconciliationPolicy",
    "RecordDeletion",
    "RecordPair",
    "ResolutionReport",
    "ResolveIdentities",
    "build_plan",
    "deduplicate_records",
    "fold_revisions",
    "generate_sku",
    "normalize_name",
    "normalize_price",
    "normalize_size",
    "resolve_identities",
    "validate_sku",
]
