"""Revision folding and per-side duplicate detection.

Responsibilities of this stage:
- fold draft/published revisions of one content document into one record
- group records of one side by ``(collection group, normalised name)``
- pick one canonical record per group; the rest are reported as duplicates

Duplicates are never merged here. Merging requires a human decision.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from catalogsync.domain.model import PairStatus, Revision, StoreKind

from .contracts import RecordPair
from .normalize import normalize_group, normalize_name

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from catalogsync.domain.model import ProductRecord

log = logging.getLogger(__name__)

_EPOCH_MAX = datetime.max


@dataclass(slots=True)
class DeduplicationResult:
    """Canonical records of one side plus duplicate classifications.

    ``duplicate_keys`` maps every canonical key that outranked others to those keys.
    """

    canonical: list[ProductRecord] = field(default_factory=list["ProductRecord"])
    duplicates: list[RecordPair] = field(default_factory=list[RecordPair])
    duplicate_keys: dict[str, tuple[str, ...]] = field(default_factory=dict[str, tuple[str, ...]])


def fold_revisions(records: Iterable[ProductRecord]) -> list[ProductRecord]:
    """Collapse draft and published revisions sharing a key.

    The published revision wins and is flagged ``draft_pending``; a draft with
    no published counterpart stands in for the document.
    """

    by_key: dict[str, list[ProductRecord]] = {}
    for record in records:
        by_key.setdefault(record.key, []).append(record)

    folded: list[ProductRecord] = []
    for key in sorted(by_key):
        revisions = by_key[key]
        published = [r for r in revisions if r.revision is Revision.PUBLISHED]
        drafts = [r for r in revisions if r.revision is Revision.DRAFT]
        if published:
            folded.append(replace(published[0], draft_pending=bool(drafts)))
        else:
            folded.append(drafts[0])
        if len(published) > 1 or len(drafts) > 1:
            log.warning("Record %s listed with repeated revisions; keeping the first", key)
    return folded


def deduplicate_records(
    records: Iterable[ProductRecord],
    *,
    allowed_punctuation: str,
    linked_keys: Collection[str] = (),
) -> DeduplicationResult:
    """Split one side's records into canonical records and duplicates.

    ``linked_keys`` holds keys referenced by the other side's linkage; such
    records count as linked when choosing the canonical record.
    """

    result = DeduplicationResult()
    groups: dict[tuple[str | None, str], list[ProductRecord]] = {}
    for record in records:
        name = normalize_name(record.display_name, allowed_punctuation=allowed_punctuation)
        if name is None:
            result.canonical.append(record)
            continue
        groups.setdefault((normalize_group(record.collection_group), name), []).append(record)

    for members in groups.values():
        if len(members) == 1:
            result.canonical.append(members[0])
            continue
        ranked = sorted(members, key=lambda record: _canonical_rank(record, linked_keys))
        canonical, *extras = ranked
        result.canonical.append(canonical)
        result.duplicate_keys[canonical.key] = tuple(sorted(extra.key for extra in extras))
        log.info(
            "Duplicate group for %s: canonical=%s duplicates=%s",
            canonical.display_name,
            canonical.key,
            [extra.key for extra in extras],
        )
        for extra in extras:
            result.duplicates.append(_duplicate_pair(extra, canonical=canonical))

    result.canonical.sort(key=lambda record: record.key)
    result.duplicates.sort(key=lambda pair: pair.sort_key)
    return result


def _canonical_rank(
    record: ProductRecord, linked_keys: Collection[str]
) -> tuple[int, int, datetime, str]:
    linked = record.linkage is not None or record.key in linked_keys
    created_at = _naive_utc(record.created_at) if record.created_at else _EPOCH_MAX
    return (
        0 if linked else 1,
        0 if record.has_primary_image else 1,
        created_at,
        record.key,
    )


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _duplicate_pair(record: ProductRecord, *, canonical: ProductRecord) -> RecordPair:
    reason = f"same name as {canonical.key} in collection group {canonical.collection_group}"
    if record.store is StoreKind.CONTENT:
        return RecordPair(
            status=PairStatus.DUPLICATE,
            content=record,
            canonical_key=canonical.key,
            reason=reason,
        )
    return RecordPair(
        status=PairStatus.DUPLICATE,
        commerce=record,
        canonical_key=canonical.key,
        reason=reason,
    )
