"""Shared reconciliation contracts.

This module holds the resolver output (``RecordPair``/``ResolutionReport``)
and the issue vocabulary shared by the reconciler and the reports.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from catalogsync.domain.model import PairStatus

if TYPE_CHECKING:
    from catalogsync.domain.model import MatchKind, ProductRecord

_TWO_SIDED = frozenset({PairStatus.MATCHED, PairStatus.SUGGESTED})


class IssueKind(StrEnum):
    """Category of a problem that needs human attention."""

    AMBIGUOUS_MATCH = "ambiguous_match"
    DUPLICATE = "duplicate"
    ORPHANED_LINK = "orphaned_link"
    ASYMMETRIC_LINK = "asymmetric_link"
    LOW_CONFIDENCE = "low_confidence"
    VALIDATION = "validation"
    SKU_COLLISION = "sku_collision"
    MISSING_IMAGE = "missing_image"
    UNMATCHED = "unmatched"


@dataclass(frozen=True, slots=True, kw_only=True)
class PlanIssue:
    """A reported problem; issues never produce writes."""

    kind: IssueKind
    record_keys: tuple[str, ...]
    message: str


@dataclass(frozen=True, slots=True, kw_only=True)
class RecordPair:
    """Classification of one record, or of one content/commerce record pair."""

    status: PairStatus
    content: ProductRecord | None = None
    commerce: ProductRecord | None = None
    match_kind: MatchKind | None = None
    candidates: tuple[str, ...] = ()
    canonical_key: str | None = None
    reason: str | None = None

    def __post_init__(self) -> None:
        if self.content is None and self.commerce is None:
            raise ValueError("Record pair must hold at least one record")
        if self.status in _TWO_SIDED and (self.content is None or self.commerce is None):
            raise ValueError(f"{self.status} pair requires both a content and a commerce record")

    @property
    def records(self) -> tuple[ProductRecord, ...]:
        return tuple(record for record in (self.content, self.commerce) if record is not None)

    @property
    def sort_key(self) -> tuple[str, str]:
        return (
            self.content.key if self.content is not None else "",
            self.commerce.key if self.commerce is not None else "",
        )

    @property
    def label(self) -> str:
        return " <-> ".join(record.label for record in self.records)


@dataclass(slots=True)
class ResolutionReport:
    """Every input record, classified exactly once."""

    pairs: list[RecordPair] = field(default_factory=list[RecordPair])

    def with_status(self, *statuses: PairStatus) -> list[RecordPair]:
        return [pair for pair in self.pairs if pair.status in statuses]

    def counts(self) -> dict[str, int]:
        counter = Counter(pair.status for pair in self.pairs)
        return {status.value: counter.get(status, 0) for status in PairStatus}
