"""Field reconciliation: turn a resolution report into a plan.

For each matched pair, every field with an owner in the policy's ownership
table is compared and a change is emitted only where the non-owning side
differs. Linkage is always converged on matched pairs. Commerce records with
no content counterpart are handled by the configured orphan policy.

The output is deterministic: pairs are visited in report order and fields in
a fixed order, so the same snapshot always yields the same plan.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from catalogsync.domain.errors import ValidationError
from catalogsync.domain.model import (
    DEFAULT_VARIANT,
    FieldName,
    OrphanPolicy,
    PairStatus,
    Revision,
    StoreKind,
)

from .contracts import IssueKind, PlanIssue
from .normalize import normalize_group
from .plan import FieldChange, PlannedChange, ReconciliationPlan, RecordDeletion
from .skus import generate_sku, validate_sku

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from catalogsync.domain.model import ProductRecord

    from .contracts import RecordPair, ResolutionReport
    from .plan import FieldValue
    from .policy import ReconciliationPolicy

log = logging.getLogger(__name__)

type ExpectedSkus = dict[str, dict[str, str]]


class ReconcileFields(Protocol):
    """Compute the plan for a resolution report."""

    def __call__(
        self,
        report: ResolutionReport,
        *,
        policy: ReconciliationPolicy,
    ) -> ReconciliationPlan: ...


def build_plan(
    report: ResolutionReport,
    *,
    policy: ReconciliationPolicy,
    plan_id: str | None = None,
    created_at: datetime | None = None,
) -> ReconciliationPlan:
    """Compute the minimal ordered set of changes for ``report``."""

    issues = [issue for pair in report.pairs if (issue := _issue_for_pair(pair)) is not None]
    sku_subjects = [
        pair.content
        for pair in report.with_status(PairStatus.MATCHED, PairStatus.UNMATCHED)
        if pair.content is not None
    ]
    expected_skus = _expected_skus(
        sku_subjects, policy=policy, issues=issues, held=_held_commerce_skus(report)
    )

    changes: list[PlannedChange] = []
    for pair in report.pairs:
        if pair.status is PairStatus.MATCHED and pair.content and pair.commerce:
            pair_changes = _matched_pair_changes(
                pair.content,
                pair.commerce,
                policy=policy,
                expected_skus=expected_skus,
                issues=issues,
            )
            if not any(change.field is FieldName.MEDIA for change in pair_changes):
                _check_image(pair.content, issues=issues)
            changes.extend(pair_changes)
            changes.extend(_legacy_name_changes(pair.content, policy=policy))
        elif pair.status is PairStatus.UNMATCHED and pair.content is not None:
            _check_image(pair.content, issues=issues)
            changes.extend(
                _content_sku_changes(pair.content, policy=policy, expected_skus=expected_skus)
            )
            changes.extend(_legacy_name_changes(pair.content, policy=policy))
        elif pair.status in (PairStatus.UNMATCHED, PairStatus.ORPHANED) and pair.content is None:
            change = _orphan_change(pair, policy=policy)
            if change is not None:
                changes.append(change)

    summary = report.counts()
    summary["planned"] = len(changes)
    plan = ReconciliationPlan(changes=changes, issues=issues, summary=summary)
    if plan_id is not None:
        plan.plan_id = plan_id
    if created_at is not None:
        plan.created_at = created_at
    log.info(
        "Planned %d change(s) with %d issue(s) (plan_id=%s)",
        len(changes),
        len(issues),
        plan.plan_id,
    )
    return plan


def _issue_for_pair(pair: RecordPair) -> PlanIssue | None:
    keys = tuple(record.key for record in pair.records)
    match pair.status:
        case PairStatus.AMBIGUOUS:
            return PlanIssue(
                kind=IssueKind.AMBIGUOUS_MATCH,
                record_keys=keys + pair.candidates,
                message=f"{pair.label} has several candidates: {', '.join(pair.candidates)}",
            )
        case PairStatus.DUPLICATE:
            return PlanIssue(
                kind=IssueKind.DUPLICATE,
                record_keys=(*keys, pair.canonical_key or ""),
                message=f"{pair.label} duplicates {pair.canonical_key}",
            )
        case PairStatus.ORPHANED:
            return PlanIssue(
                kind=IssueKind.ORPHANED_LINK,
                record_keys=keys + pair.candidates,
                message=f"{pair.label}: {pair.reason}",
            )
        case PairStatus.ASYMMETRIC:
            return PlanIssue(
                kind=IssueKind.ASYMMETRIC_LINK,
                record_keys=keys + pair.candidates,
                message=f"{pair.label}: {pair.reason}",
            )
        case PairStatus.SUGGESTED:
            return PlanIssue(
                kind=IssueKind.LOW_CONFIDENCE,
                record_keys=keys,
                message=f"{pair.label} is a fuzzy match; confirm it with a manual override",
            )
        case PairStatus.UNMATCHED:
            return PlanIssue(
                kind=IssueKind.UNMATCHED,
                record_keys=keys,
                message=f"{pair.label} has no counterpart",
            )
        case _:
            return None


def _expected_skus(
    records: list[ProductRecord],
    *,
    policy: ReconciliationPolicy,
    issues: list[PlanIssue],
    held: Mapping[str, set[str]] | None = None,
) -> ExpectedSkus:
    """Generate, validate and collision-check SKUs for content records.

    ``held`` maps SKUs already stored in the commerce store to the keys of the
    records holding them; a generated SKU held by anyone else collides.
    """

    if policy.owner_of(FieldName.SKU) is not StoreKind.CONTENT:
        return {}

    claims: dict[str, list[tuple[str, str]]] = {}
    for record in records:
        sizes = policy.sizes_for(record.collection_group)
        if not sizes:
            if record.collection_group is None:
                issues.append(
                    PlanIssue(
                        kind=IssueKind.VALIDATION,
                        record_keys=(record.key,),
                        message=f"{record.label} has no collection group; SKUs not generated",
                    )
                )
            continue
        if not record.display_name or not record.collection_group:
            issues.append(
                PlanIssue(
                    kind=IssueKind.VALIDATION,
                    record_keys=(record.key,),
                    message=f"{record.label} has no display name; SKUs not generated",
                )
            )
            continue
        for size in sizes:
            sku = generate_sku(record.collection_group, record.display_name, size)
            try:
                validate_sku(sku)
            except ValidationError as exc:
                issues.append(
                    PlanIssue(
                        kind=IssueKind.VALIDATION,
                        record_keys=(record.key,),
                        message=f"{record.label}: {exc}",
                    )
                )
                continue
            claims.setdefault(sku, []).append((record.key, size))

    expected: ExpectedSkus = {}
    for sku, owners in sorted(claims.items()):
        owner_keys = sorted({key for key, _size in owners} | (held or {}).get(sku, set()))
        if len(owner_keys) > 1:
            issues.append(
                PlanIssue(
                    kind=IssueKind.SKU_COLLISION,
                    record_keys=tuple(owner_keys),
                    message=f"SKU {sku} would be shared by {', '.join(owner_keys)}",
                )
            )
            continue
        for key, size in owners:
            expected.setdefault(key, {})[size] = sku
    return expected


def _held_commerce_skus(report: ResolutionReport) -> dict[str, set[str]]:
    """SKUs stored on commerce records that no matched pair will rewrite."""

    held: dict[str, set[str]] = {}
    for pair in report.pairs:
        if pair.commerce is None or pair.status is PairStatus.MATCHED:
            continue
        for sku in pair.commerce.skus.values():
            if sku:
                held.setdefault(sku, set()).add(pair.commerce.key)
    return held


def _check_image(content: ProductRecord, *, issues: list[PlanIssue]) -> None:
    if content.has_primary_image:
        return
    state = "only a placeholder image" if content.media is not None else "no image"
    issues.append(
        PlanIssue(
            kind=IssueKind.MISSING_IMAGE,
            record_keys=(content.key,),
            message=f"{content.label} has {state} and no image to copy",
        )
    )


def _legacy_name_changes(
    content: ProductRecord, *, policy: ReconciliationPolicy
) -> list[FieldChange]:
    wanted = policy.legacy_name_visibility
    if wanted is None or not content.legacy_name or content.show_legacy_name is wanted:
        return []
    return [
        _set(
            content,
            FieldName.LEGACY_NAME_VISIBILITY,
            wanted,
            content.show_legacy_name,
            reason="legacy name visibility",
        )
    ]


def _revisions(record: ProductRecord) -> tuple[Revision, ...]:
    if record.revision is Revision.DRAFT:
        return (Revision.DRAFT,)
    if record.draft_pending:
        return (Revision.PUBLISHED, Revision.DRAFT)
    return (Revision.PUBLISHED,)


def _set(
    record: ProductRecord,
    field_name: FieldName,
    value: FieldValue,
    previous: FieldValue,
    *,
    variant: str | None = None,
    variant_key: str | None = None,
    reason: str | None = None,
) -> FieldChange:
    return FieldChange(
        target=record.store,
        record_key=record.key,
        field=field_name,
        value=value,
        previous=previous,
        variant=variant,
        variant_key=variant_key,
        revisions=_revisions(record),
        reason=reason,
    )


def _content_sku_changes(
    content: ProductRecord,
    *,
    policy: ReconciliationPolicy,
    expected_skus: ExpectedSkus,
) -> list[FieldChange]:
    single_size = len(policy.sizes_for(content.collection_group)) == 1
    changes: list[FieldChange] = []
    for size, sku in expected_skus.get(content.key, {}).items():
        current = content.sku_for(size, single_size=single_size)
        if current != sku:
            changes.append(_set(content, FieldName.SKU, sku, current, variant=size, reason="sku"))
    return changes


def _matched_pair_changes(
    content: ProductRecord,
    commerce: ProductRecord,
    *,
    policy: ReconciliationPolicy,
    expected_skus: ExpectedSkus,
    issues: list[PlanIssue],
) -> list[FieldChange]:
    changes: list[FieldChange] = []
    owner = policy.owner_of

    if owner(FieldName.DISPLAY_NAME) is StoreKind.CONTENT:
        if content.display_name and commerce.display_name != content.display_name:
            changes.append(
                _set(
                    commerce,
                    FieldName.DISPLAY_NAME,
                    content.display_name,
                    commerce.display_name,
                    reason="content owns display name",
                )
            )
    elif owner(FieldName.DISPLAY_NAME) is StoreKind.COMMERCE:
        if commerce.display_name and content.display_name != commerce.display_name:
            changes.append(
                _set(
                    content,
                    FieldName.DISPLAY_NAME,
                    commerce.display_name,
                    content.display_name,
                    reason="commerce owns display name",
                )
            )

    if (
        owner(FieldName.COLLECTION_GROUP) is StoreKind.CONTENT
        and content.collection_group
        and normalize_group(commerce.collection_group) != normalize_group(content.collection_group)
    ):
        changes.append(
            _set(
                commerce,
                FieldName.COLLECTION_GROUP,
                content.collection_group,
                commerce.collection_group,
                reason="content owns collection group",
            )
        )

    if (
        owner(FieldName.STOCK_STATUS) is StoreKind.COMMERCE
        and commerce.stock_status is not None
        and content.stock_status != commerce.stock_status
    ):
        changes.append(
            _set(
                content,
                FieldName.STOCK_STATUS,
                commerce.stock_status,
                content.stock_status,
                reason="commerce owns stock status",
            )
        )

    if (
        owner(FieldName.PRICE) is StoreKind.COMMERCE
        and commerce.price is not None
        and content.price != commerce.price
    ):
        changes.append(
            _set(
                content,
                FieldName.PRICE,
                commerce.price,
                content.price,
                reason="commerce owns price",
            )
        )

    if (
        owner(FieldName.MEDIA) is StoreKind.COMMERCE
        and commerce.media is not None
        and not content.has_primary_image
    ):
        changes.append(
            _set(
                content,
                FieldName.MEDIA,
                commerce.media.url or commerce.media.ref,
                content.media.ref if content.media is not None else None,
                reason="content has no primary image",
            )
        )

    changes.extend(_content_sku_changes(content, policy=policy, expected_skus=expected_skus))
    changes.extend(
        _commerce_sku_changes(
            content, commerce, policy=policy, expected_skus=expected_skus, issues=issues
        )
    )
    changes.extend(_linkage_changes(content, commerce, policy=policy))
    return changes


def _commerce_sku_changes(
    content: ProductRecord,
    commerce: ProductRecord,
    *,
    policy: ReconciliationPolicy,
    expected_skus: ExpectedSkus,
    issues: list[PlanIssue],
) -> list[FieldChange]:
    skus = expected_skus.get(content.key, {})
    single_size = len(policy.sizes_for(content.collection_group)) == 1
    changes: list[FieldChange] = []
    for size, sku in skus.items():
        variant_key = commerce.variant_key_for(size, single_size=single_size)
        if variant_key is None:
            issues.append(
                PlanIssue(
                    kind=IssueKind.VALIDATION,
                    record_keys=(content.key, commerce.key),
                    message=f"{commerce.label} has no {size} variant for SKU {sku}",
                )
            )
            continue
        current = commerce.sku_for(size, single_size=single_size)
        if current != sku:
            changes.append(
                _set(
                    commerce,
                    FieldName.SKU,
                    sku,
                    current,
                    variant=size,
                    variant_key=variant_key,
                    reason="sku",
                )
            )
    return changes


def _linkage_changes(
    content: ProductRecord,
    commerce: ProductRecord,
    *,
    policy: ReconciliationPolicy,
) -> list[FieldChange]:
    changes: list[FieldChange] = []
    content_link = content.linkage.target_key if content.linkage is not None else None
    if content_link != commerce.key:
        changes.append(
            _set(content, FieldName.LINKAGE, commerce.key, content_link, reason="linkage")
        )

    commerce_link = commerce.linkage.target_key if commerce.linkage is not None else None
    if commerce_link != content.key:
        changes.append(
            _set(commerce, FieldName.LINKAGE, content.key, commerce_link, reason="linkage")
        )

    sizes = policy.sizes_for(content.collection_group) or tuple(sorted(commerce.variant_keys))
    single_size = len(sizes) == 1
    linked_variants = content.linkage.variant_keys if content.linkage is not None else {}
    for size in sizes:
        variant_key = commerce.variant_key_for(size, single_size=single_size)
        current = linked_variants.get(size)
        if current is None and single_size:
            current = linked_variants.get(DEFAULT_VARIANT)
        if variant_key is None or current == variant_key:
            continue
        changes.append(
            _set(
                content,
                FieldName.VARIANT_LINKAGE,
                variant_key,
                current,
                variant=size,
                reason="variant linkage",
            )
        )
    return changes


def _orphan_change(pair: RecordPair, *, policy: ReconciliationPolicy) -> PlannedChange | None:
    record = pair.commerce
    if record is None:
        return None
    match policy.orphan_policy:
        case OrphanPolicy.DELETE:
            return RecordDeletion(
                target=record.store,
                record_key=record.key,
                reason=f"orphan policy: {pair.status}",
            )
        case OrphanPolicy.REASSIGN:
            group = policy.orphan_collection_group
            if normalize_group(record.collection_group) == normalize_group(group):
                return None
            return _set(
                record,
                FieldName.COLLECTION_GROUP,
                group,
                record.collection_group,
                reason=f"orphan policy: {pair.status}",
            )
        case _:
            return None
