from __future__ import annotations

from typing import TYPE_CHECKING

from catalogsync.adapters.sqlalchemy import SqlAlchemyApplyLedger
from catalogsync.domain.model import FieldName, MediaRef, StoreKind
from catalogsync.domain.reconciliation import (
    ChangeApplier,
    ChangeOutcome,
    FieldChange,
    ReconciliationEngine,
    ReconciliationPlan,
    ReconciliationPolicy,
    RecordDeletion,
)
from catalogsync.domain.reconciliation.apply import is_satisfied
from tests.helpers.catalog import FakeCatalogStore, make_commerce, make_content

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, sessionmaker

P1 = "gid://shopify/Product/1"


def _stores(
    *,
    reject: tuple[tuple[str, FieldName], ...] = (),
    vanished: tuple[str, ...] = (),
) -> dict[StoreKind, FakeCatalogStore]:
    content = [make_content(f"scent-{index}", f"Scent {index}") for index in range(5)]
    return {
        StoreKind.CONTENT: FakeCatalogStore(
            StoreKind.CONTENT, content, reject=reject, vanished=vanished
        ),
        StoreKind.COMMERCE: FakeCatalogStore(StoreKind.COMMERCE),
    }


def _engine(stores: dict[StoreKind, FakeCatalogStore], **kwargs: object) -> ReconciliationEngine:
    return ReconciliationEngine(stores=stores, policy=ReconciliationPolicy(), **kwargs)


def test_failure_at_one_change_does_not_stop_the_rest() -> None:
    stores = _stores(reject=(("scent-1", FieldName.SKU), ("scent-3", FieldName.SKU)))
    engine = _engine(stores)
    plan = engine.plan()

    result = engine.apply(plan)

    # two sizes per record, five records
    assert result.attempted == 10
    assert result.failed == 4
    assert result.succeeded == 6
    assert result.skipped == 0
    assert not result.ok
    assert {failure.record_key for failure in result.failures} == {"scent-1", "scent-3"}
    assert {failure.reason for failure in result.failures} == {"write_rejected"}
    assert [change.record_key for change in stores[StoreKind.CONTENT].writes][-2:] == [
        "scent-4",
        "scent-4",
    ]


def test_rerunning_a_plan_skips_satisfied_changes() -> None:
    stores = _stores()
    engine = _engine(stores)
    plan = engine.plan()

    first = engine.apply(plan)
    second = engine.apply(plan)

    assert first.succeeded == 10
    assert second.succeeded == 0
    assert second.skipped == 10
    assert len(stores[StoreKind.CONTENT].writes) == 10


def test_vanished_record_is_skipped_and_reported() -> None:
    stores = _stores()
    engine = _engine(stores)
    plan = engine.plan()
    stores[StoreKind.CONTENT].vanished.add("scent-2")

    result = engine.apply(plan)

    assert result.ok
    assert result.skipped == 2
    assert result.succeeded == 8
    assert [(m.record_key, m.reason) for m in result.missing] == [
        ("scent-2", "not_found"),
        ("scent-2", "not_found"),
    ]


def test_deleting_a_missing_record_is_already_satisfied() -> None:
    store = FakeCatalogStore(StoreKind.COMMERCE, [make_commerce(P1, "Retired")])
    plan = ReconciliationPlan(
        changes=[
            RecordDeletion(target=StoreKind.COMMERCE, record_key=P1),
            RecordDeletion(target=StoreKind.COMMERCE, record_key=P1),
        ]
    )

    result = ChangeApplier(stores={StoreKind.COMMERCE: store})(plan)

    assert store.deleted == [P1]
    assert (result.succeeded, result.skipped, result.failed) == (1, 1, 0)


def test_dry_run_renders_without_writing() -> None:
    stores = _stores()
    engine = _engine(stores)
    plan = engine.plan()

    rendered = engine.dry_run(plan)

    assert len(rendered) == len(plan.changes)
    assert all(line.startswith("fake set content:scent-") for line in rendered)
    assert stores[StoreKind.CONTENT].writes == []
    assert stores[StoreKind.CONTENT].reads == 0


def test_ledger_resumes_partially_applied_plan(
    sqlite_session_factory: sessionmaker[Session],
) -> None:
    ledger = SqlAlchemyApplyLedger(session_factory=sqlite_session_factory)
    stores = _stores(reject=(("scent-4", FieldName.SKU),))
    engine = _engine(stores, ledger=ledger)
    plan = engine.plan()

    first = engine.apply(plan)
    reads_after_first = stores[StoreKind.CONTENT].reads
    stores[StoreKind.CONTENT].reject.clear()
    second = engine.apply(plan)

    assert (first.succeeded, first.failed) == (8, 2)
    assert (second.succeeded, second.skipped, second.failed) == (2, 8, 0)
    assert stores[StoreKind.CONTENT].reads - reads_after_first == 2
    outcomes = ledger.outcomes_for_plan(plan.plan_id)
    assert [outcome for _change_id, outcome in outcomes].count(ChangeOutcome.SUCCEEDED) == 10
    assert ledger.succeeded_change_ids(plan.plan_id) == {c.change_id for c in plan.changes}


def test_is_satisfied_rules() -> None:
    media = FieldChange(
        target=StoreKind.CONTENT, record_key="a", field=FieldName.MEDIA, value="https://x"
    )
    group = FieldChange(
        target=StoreKind.COMMERCE, record_key="b", field=FieldName.COLLECTION_GROUP, value="terra"
    )
    price = FieldChange(
        target=StoreKind.CONTENT, record_key="a", field=FieldName.PRICE, value="12.00"
    )

    assert is_satisfied(media, "image-asset-id")
    assert not is_satisfied(media, None)
    assert is_satisfied(group, "Terra")
    assert not is_satisfied(group, "ember")
    assert is_satisfied(price, "12.00")
    assert not is_satisfied(price, "12.0")


def test_plan_apply_replan_converges(policy: ReconciliationPolicy) -> None:
    content = [
        make_content("onyx", "Onyx"),
        make_content("white-musk", "White Musk", group="petal"),
        make_content("shifa", "Mukhallat Shifa", group="relic"),
    ]
    commerce = [
        make_commerce(
            P1,
            "Onyx",
            stock_status=False,
            price="14.5",
            media=MediaRef(ref="https://cdn/onyx.jpg", url="https://cdn/onyx.jpg"),
        ),
        make_commerce("gid://shopify/Product/2", "Musk Tahara", stock_status=True),
        make_commerce("gid://shopify/Product/3", "Mukhallat Al-Shifa", variants=("default",)),
    ]
    stores = {
        StoreKind.CONTENT: FakeCatalogStore(StoreKind.CONTENT, content),
        StoreKind.COMMERCE: FakeCatalogStore(StoreKind.COMMERCE, commerce),
    }
    engine = ReconciliationEngine(stores=stores, policy=policy)

    plan = engine.plan()
    result = engine.apply(plan)
    replan = engine.plan()

    assert plan.summary["matched"] == 3
    assert result.ok
    assert result.succeeded == len(plan.changes)
    assert replan.is_empty
    assert replan.summary["matched"] == 3
