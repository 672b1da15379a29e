from __future__ import annotations

from datetime import UTC, datetime

from catalogsync.domain.model import (
    FieldName,
    MediaRef,
    OrphanPolicy,
    PairStatus,
    ProductRecord,
    Revision,
    StoreKind,
)
from catalogsync.domain.reconciliation import (
    FieldChange,
    IssueKind,
    ReconciliationPlan,
    ReconciliationPolicy,
    RecordDeletion,
    build_plan,
    resolve_identities,
)
from tests.helpers.catalog import draft_of, make_commerce, make_content

P1 = "gid://shopify/Product/1"
P2 = "gid://shopify/Product/2"
IMAGE = "https://cdn.shopify.com/onyx.jpg"


def _onyx_commerce(*, linked_to: str | None = None, **overrides: object) -> ProductRecord:
    fields: dict[str, object] = {
        "stock_status": True,
        "price": "12.00",
        "media": MediaRef(ref=IMAGE, url=IMAGE),
    }
    fields.update(overrides)
    return make_commerce(P1, "Onyx", linked_to=linked_to, **fields)


def _plan(
    content: list[ProductRecord],
    commerce: list[ProductRecord],
    policy: ReconciliationPolicy | None = None,
) -> ReconciliationPlan:
    effective = policy or ReconciliationPolicy()
    report = resolve_identities(content, commerce, policy=effective)
    return build_plan(report, policy=effective)


def _shape(change: FieldChange | RecordDeletion) -> tuple[object, ...]:
    if isinstance(change, RecordDeletion):
        return (change.target, change.record_key, "delete")
    return (change.target, change.field, change.variant, change.value)


def test_matched_pair_produces_owned_fields_in_fixed_order() -> None:
    plan = _plan([make_content("onyx", "Onyx")], [_onyx_commerce()])

    assert [_shape(change) for change in plan.changes] == [
        (StoreKind.CONTENT, FieldName.STOCK_STATUS, None, True),
        (StoreKind.CONTENT, FieldName.PRICE, None, "12.00"),
        (StoreKind.CONTENT, FieldName.MEDIA, None, IMAGE),
        (StoreKind.CONTENT, FieldName.SKU, "6ml", "TERRA-ONYX-6ML"),
        (StoreKind.CONTENT, FieldName.SKU, "12ml", "TERRA-ONYX-12ML"),
        (StoreKind.COMMERCE, FieldName.SKU, "6ml", "TERRA-ONYX-6ML"),
        (StoreKind.COMMERCE, FieldName.SKU, "12ml", "TERRA-ONYX-12ML"),
        (StoreKind.CONTENT, FieldName.LINKAGE, None, P1),
        (StoreKind.COMMERCE, FieldName.LINKAGE, None, "onyx"),
        (StoreKind.CONTENT, FieldName.VARIANT_LINKAGE, "6ml", "gid://shopify/ProductVariant/11"),
        (StoreKind.CONTENT, FieldName.VARIANT_LINKAGE, "12ml", "gid://shopify/ProductVariant/12"),
    ]
    commerce_skus = [c for c in plan.changes_for(StoreKind.COMMERCE) if c.field is FieldName.SKU]
    assert [c.variant_key for c in commerce_skus] == [
        "gid://shopify/ProductVariant/11",
        "gid://shopify/ProductVariant/12",
    ]
    assert plan.summary["matched"] == 1
    assert plan.summary["planned"] == len(plan.changes)


def test_converged_pair_produces_no_changes() -> None:
    content = make_content(
        "onyx",
        "Onyx",
        linked_to=P1,
        variant_links={
            "6ml": "gid://shopify/ProductVariant/11",
            "12ml": "gid://shopify/ProductVariant/12",
        },
        stock_status=True,
        price="12.00",
        media=MediaRef(ref="image-onyx"),
        skus={"6ml": "TERRA-ONYX-6ML", "12ml": "TERRA-ONYX-12ML"},
    )
    commerce = _onyx_commerce(
        linked_to="onyx",
        skus={"6ml": "TERRA-ONYX-6ML", "12ml": "TERRA-ONYX-12ML"},
    )

    plan = _plan([content], [commerce])

    assert plan.is_empty
    assert plan.issues == []


def test_commerce_stock_overwrites_content_cache_only() -> None:
    content = make_content("onyx", "Onyx", linked_to=P1, stock_status=True)
    commerce = _onyx_commerce(linked_to="onyx", stock_status=False)

    plan = _plan([content], [commerce])

    stock = [
        c
        for c in plan.changes
        if isinstance(c, FieldChange) and c.field is FieldName.STOCK_STATUS
    ]
    assert [(c.target, c.value, c.previous) for c in stock] == [(StoreKind.CONTENT, False, True)]


def test_media_only_fills_missing_or_placeholder_images() -> None:
    real = make_content("onyx", "Onyx", media=MediaRef(ref="image-onyx"))
    placeholder = make_content(
        "amber", "Amber", media=MediaRef(ref="https://cdn/amber.jpg", placeholder=True)
    )
    commerce = [
        _onyx_commerce(),
        make_commerce(P2, "Amber", media=MediaRef(ref=IMAGE, url=IMAGE)),
    ]

    plan = _plan([real, placeholder], commerce)

    media = [c for c in plan.changes if isinstance(c, FieldChange) and c.field is FieldName.MEDIA]
    assert [(c.record_key, c.value, c.previous) for c in media] == [
        ("amber", IMAGE, "https://cdn/amber.jpg")
    ]


def test_display_name_pushed_only_when_owned() -> None:
    content = [make_content("onyx", "Onyx Noir", legacy_name="Onyx")]
    commerce = [_onyx_commerce()]

    default_plan = _plan(content, commerce)
    owned_plan = _plan(
        content,
        commerce,
        ReconciliationPolicy(
            ownership={
                FieldName.SKU: StoreKind.CONTENT,
                FieldName.DISPLAY_NAME: StoreKind.CONTENT,
                FieldName.COLLECTION_GROUP: StoreKind.CONTENT,
            }
        ),
    )

    assert all(
        c.field is not FieldName.DISPLAY_NAME
        for c in default_plan.changes
        if isinstance(c, FieldChange)
    )
    pushed = [
        (c.target, c.field, c.value)
        for c in owned_plan.changes
        if isinstance(c, FieldChange)
        and c.field in {FieldName.DISPLAY_NAME, FieldName.COLLECTION_GROUP}
    ]
    assert pushed == [
        (StoreKind.COMMERCE, FieldName.DISPLAY_NAME, "Onyx Noir"),
        (StoreKind.COMMERCE, FieldName.COLLECTION_GROUP, "terra"),
    ]
    assert all(
        c.field is not FieldName.PRICE for c in owned_plan.changes if isinstance(c, FieldChange)
    )


def test_sku_collision_is_an_issue_not_a_change() -> None:
    content = [make_content("rose-oud", "Rose & Oud"), make_content("rose-oud-2", "Rose Oud")]

    plan = _plan(content, [])

    skus = [c for c in plan.changes if isinstance(c, FieldChange) and c.field is FieldName.SKU]
    assert skus == []
    collisions = [issue for issue in plan.issues if issue.kind is IssueKind.SKU_COLLISION]
    assert len(collisions) == 2
    assert {issue.record_keys for issue in collisions} == {("rose-oud", "rose-oud-2")}


def test_records_without_group_or_name_get_validation_issues() -> None:
    content = [make_content("nogroup", "Onyx", group=None), make_content("noname", None)]

    plan = _plan(content, [])

    validation = [issue for issue in plan.issues if issue.kind is IssueKind.VALIDATION]
    assert {issue.record_keys for issue in validation} == {("nogroup",), ("noname",)}
    assert plan.is_empty


def test_unmatched_content_still_gets_skus() -> None:
    content = make_content(
        "onyx", "Onyx", skus={"6ml": "TERRA-ONYX-6ML"}, media=MediaRef(ref="image-onyx")
    )

    plan = _plan([content], [])

    assert [_shape(change) for change in plan.changes] == [
        (StoreKind.CONTENT, FieldName.SKU, "12ml", "TERRA-ONYX-12ML")
    ]
    (issue,) = plan.issues
    assert issue.kind is IssueKind.UNMATCHED


def test_single_size_group_uses_default_variant() -> None:
    content = make_content("shifa", "Mukhallat Shifa", group="relic")
    commerce = make_commerce(P1, "Mukhallat Shifa", variants=("default",))

    plan = _plan([content], [commerce])

    shapes = [_shape(change) for change in plan.changes]
    assert (StoreKind.COMMERCE, FieldName.SKU, "3ml", "RELIC-MUKHALLATSHIFA-3ML") in shapes
    assert (
        StoreKind.CONTENT,
        FieldName.VARIANT_LINKAGE,
        "3ml",
        "gid://shopify/ProductVariant/11",
    ) in shapes


def test_missing_commerce_variant_is_reported() -> None:
    content = make_content("onyx", "Onyx")
    commerce = make_commerce(P1, "Onyx", variants=("6ml",))

    plan = _plan([content], [commerce])

    commerce_skus = [
        c.variant
        for c in plan.changes_for(StoreKind.COMMERCE)
        if isinstance(c, FieldChange) and c.field is FieldName.SKU
    ]
    assert commerce_skus == ["6ml"]
    assert any(
        issue.kind is IssueKind.VALIDATION and "12ml" in issue.message for issue in plan.issues
    )


def test_draft_pending_changes_target_both_revisions() -> None:
    content = make_content("onyx", "Onyx")

    plan = _plan([content, draft_of(content)], [_onyx_commerce()])

    content_changes = [c for c in plan.changes_for(StoreKind.CONTENT) if isinstance(c, FieldChange)]
    assert content_changes
    assert {c.revisions for c in content_changes} == {(Revision.PUBLISHED, Revision.DRAFT)}


def test_orphan_policies() -> None:
    commerce = [make_commerce(P1, "Retired Scent"), make_commerce(P2, "Old", group="Archive")]

    report_plan = _plan([], commerce)
    delete_plan = _plan([], commerce, ReconciliationPolicy(orphan_policy=OrphanPolicy.DELETE))
    reassign_plan = _plan([], commerce, ReconciliationPolicy(orphan_policy=OrphanPolicy.REASSIGN))

    assert report_plan.is_empty
    assert report_plan.summary[PairStatus.UNMATCHED] == 2
    assert [_shape(change) for change in delete_plan.changes] == [
        (StoreKind.COMMERCE, P1, "delete"),
        (StoreKind.COMMERCE, P2, "delete"),
    ]
    assert [_shape(change) for change in reassign_plan.changes] == [
        (StoreKind.COMMERCE, FieldName.COLLECTION_GROUP, None, "archive"),
    ]


def test_same_snapshot_yields_same_plan() -> None:
    policy = ReconciliationPolicy()
    content = [make_content("onyx", "Onyx"), make_content("amber", "Amber", group="ember")]
    commerce = [_onyx_commerce(), make_commerce(P2, "Amber", price="9.5")]
    stamp = datetime(2025, 1, 1, tzinfo=UTC)

    first = build_plan(
        resolve_identities(content, commerce, policy=policy),
        policy=policy,
        plan_id="fixed",
        created_at=stamp,
    )
    second = build_plan(
        resolve_identities(list(reversed(content)), commerce, policy=policy),
        policy=policy,
        plan_id="fixed",
        created_at=stamp,
    )

    assert first == second
    assert [c.change_id for c in first.changes] == [c.change_id for c in second.changes]
    assert len({c.change_id for c in first.changes}) == len(first.changes)


def test_sku_held_by_another_commerce_record_collides() -> None:
    content = make_content("onyx", "Onyx", linked_to=P1)
    stray = make_commerce(P2, "Onyx Import", group="terra", skus={"6ml": "TERRA-ONYX-6ML"})

    plan = _plan([content], [_onyx_commerce(linked_to="onyx"), stray])

    skus = [
        (c.target, c.variant)
        for c in plan.changes
        if isinstance(c, FieldChange) and c.field is FieldName.SKU
    ]
    assert skus == [(StoreKind.CONTENT, "12ml"), (StoreKind.COMMERCE, "12ml")]
    (collision,) = [issue for issue in plan.issues if issue.kind is IssueKind.SKU_COLLISION]
    assert collision.record_keys == (P2, "onyx")


def test_missing_images_are_reported() -> None:
    content = [
        make_content("onyx", "Onyx"),
        make_content("amber", "Amber", media=MediaRef(ref="https://cdn/a.jpg", placeholder=True)),
        make_content("rose", "Rose", media=MediaRef(ref="image-rose")),
    ]
    commerce = [make_commerce(P1, "Onyx"), make_commerce(P2, "Rose")]

    plan = _plan(content, commerce)

    missing = [issue for issue in plan.issues if issue.kind is IssueKind.MISSING_IMAGE]
    assert [issue.record_keys for issue in missing] == [("amber",), ("onyx",)]
    assert "placeholder" in missing[0].message


def test_copied_image_is_not_reported_missing() -> None:
    plan = _plan([make_content("onyx", "Onyx")], [_onyx_commerce()])

    assert all(issue.kind is not IssueKind.MISSING_IMAGE for issue in plan.issues)


def test_legacy_name_visibility_follows_policy() -> None:
    content = [
        make_content("velvet", "Velvet Night", legacy_name="Nuit de Velours"),
        make_content("onyx", "Onyx", show_legacy_name=True),
    ]

    untouched = _plan(content, [])
    shown = _plan(content, [], ReconciliationPolicy(legacy_name_visibility=True))

    assert all(
        c.field is not FieldName.LEGACY_NAME_VISIBILITY
        for c in untouched.changes
        if isinstance(c, FieldChange)
    )
    visibility = [
        (c.record_key, c.value, c.previous)
        for c in shown.changes
        if isinstance(c, FieldChange) and c.field is FieldName.LEGACY_NAME_VISIBILITY
    ]
    assert visibility == [("velvet", True, False)]
