"""Executable reconciliation plan.

A plan is the only thing the applier consumes. It is a pure value: computing
it performs no I/O and the same snapshot always yields the same changes in the
same order with the same change ids, which is what makes partially applied
plans safe to resume.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Literal
from uuid import uuid4

from catalogsync.domain.model import FieldName, Revision, StoreKind

from .contracts import PlanIssue  # noqa: TC001

type FieldValue = str | bool | None


class ChangeAction(StrEnum):
    SET_FIELD = "set_field"
    DELETE_RECORD = "delete_record"


def _change_id(*parts: object) -> str:
    digest = hashlib.sha1("|".join("" if part is None else str(part) for part in parts).encode())
    return digest.hexdigest()[:16]


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldChange:
    """Set one field of one record (optionally one variant) to ``value``."""

    target: StoreKind
    record_key: str
    field: FieldName
    value: FieldValue
    previous: FieldValue = None
    variant: str | None = None
    variant_key: str | None = None
    revisions: tuple[Revision, ...] = (Revision.PUBLISHED,)
    reason: str | None = None
    action: Literal[ChangeAction.SET_FIELD] = ChangeAction.SET_FIELD

    @property
    def change_id(self) -> str:
        return _change_id(
            self.action, self.target, self.record_key, self.field, self.variant, self.value
        )

    def describe(self) -> str:
        variant = f"[{self.variant}]" if self.variant else ""
        return (
            f"set {self.target}:{self.record_key} {self.field}{variant}: "
            f"{self.previous!r} -> {self.value!r}"
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class RecordDeletion:
    """Delete one record; only produced by the ``delete`` orphan policy."""

    target: StoreKind
    record_key: str
    reason: str | None = None
    action: Literal[ChangeAction.DELETE_RECORD] = ChangeAction.DELETE_RECORD

    @property
    def change_id(self) -> str:
        return _change_id(self.action, self.target, self.record_key)

    def describe(self) -> str:
        return f"delete {self.target}:{self.record_key}"


type PlannedChange = FieldChange | RecordDeletion


def new_plan_id() -> str:
    return uuid4().hex


@dataclass(slots=True, kw_only=True)
class ReconciliationPlan:
    """Ordered changes plus the issues found while computing them."""

    plan_id: str = field(default_factory=new_plan_id)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    changes: list[PlannedChange] = field(default_factory=list["PlannedChange"])
    issues: list[PlanIssue] = field(default_factory=list[PlanIssue])
    summary: dict[str, int] = field(default_factory=dict[str, int])

    @property
    def is_empty(self) -> bool:
        return not self.changes

    def changes_for(self, target: StoreKind) -> list[PlannedChange]:
        return [change for change in self.changes if change.target is target]
