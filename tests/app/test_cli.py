from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING

import pytest

from catalogsync.app import ApplyOutcome
from catalogsync.domain.model import FieldName, StoreKind
from catalogsync.domain.reconciliation import (
    ApplyResult,
    ChangeFailure,
    FieldChange,
    ReconciliationPlan,
)
from catalogsync.ui import cli

if TYPE_CHECKING:
    from collections.abc import Callable


def _plan() -> ReconciliationPlan:
    return ReconciliationPlan(
        plan_id="plan-1",
        changes=[
            FieldChange(
                target=StoreKind.CONTENT,
                record_key="product-onyx",
                field=FieldName.STOCK_STATUS,
                value=True,
                previous=False,
            )
        ],
        summary={"matched": 1, "planned": 1},
    )


def _fake_apply(
    captured: dict[str, object], result: ApplyResult | None = None
) -> Callable[..., ApplyOutcome]:
    def fake_apply(**kwargs: object) -> ApplyOutcome:
        captured.update(kwargs)
        return ApplyOutcome(
            plan=_plan(),
            result=result or ApplyResult(plan_id="plan-1", attempted=1, succeeded=1),
            rendered=["fake mutation"] if kwargs["dry_run"] else [],
            dry_run=bool(kwargs["dry_run"]),
        )

    return fake_apply


def test_plan_command_prints_report(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], tmp_path: Path
) -> None:
    captured: dict[str, object] = {}

    def fake_plan(**kwargs: object) -> tuple[ReconciliationPlan, Path]:
        captured.update(kwargs)
        return _plan(), tmp_path / "plan.json"

    monkeypatch.setattr(cli, "plan_catalog", fake_plan)

    cli.main(["plan", "--output", str(tmp_path / "plan.json")])

    assert captured == {"output": tmp_path / "plan.json", "config_path": None}
    out = capsys.readouterr().out
    assert "Plan plan-1" in out
    assert "set content:product-onyx stock_status: False -> True" in out


def test_plan_command_json_format(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], tmp_path: Path
) -> None:
    monkeypatch.setattr(cli, "plan_catalog", lambda **_: (_plan(), tmp_path / "plan.json"))

    cli.main(["plan", "--format", "json"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["plan_id"] == "plan-1"
    assert payload["changes"][0]["field"] == "stock_status"


def test_apply_dry_run_uses_saved_plan(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], tmp_path: Path
) -> None:
    plan_file = tmp_path / "plan.json"
    plan_file.write_text("{}")
    captured: dict[str, object] = {}
    monkeypatch.setattr(cli, "apply_catalog", _fake_apply(captured))

    cli.main(["apply", "--plan", str(plan_file), "--dry-run"])

    assert captured == {"plan_path": plan_file, "dry_run": True, "config_path": None}
    out = capsys.readouterr().out
    assert "Dry run of plan plan-1: 1 mutation(s)" in out
    assert "  fake mutation" in out


def test_apply_writes_summary_json(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    summary = tmp_path / "summary.json"
    monkeypatch.setattr(cli, "apply_catalog", _fake_apply({}))

    cli.main(["apply", "--summary-json", str(summary)])

    counts = json.loads(summary.read_text())
    assert counts["matched"] == 1
    assert counts["planned"] == 1
    assert counts["succeeded"] == 1
    assert counts["failed"] == 0


def test_apply_with_failures_exits_1(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    failure = ChangeFailure(
        change_id="c1",
        target=StoreKind.CONTENT,
        record_key="product-onyx",
        reason="write_rejected",
        message="permission denied",
    )
    result = ApplyResult(plan_id="plan-1", attempted=1, failed=1, failures=[failure])
    monkeypatch.setattr(cli, "apply_catalog", _fake_apply({}, result))

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["apply"])

    assert excinfo.value.code == 1
    out = capsys.readouterr().out
    assert "failed=1" in out
    assert "content:product-onyx [write_rejected] permission denied" in out


def test_missing_plan_file_exits_1(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(cli, "apply_catalog", _fake_apply({}))

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["apply", "--plan", str(tmp_path / "absent.json")])

    assert excinfo.value.code == 1


def test_missing_config_file_exits_2(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(tmp_path / "absent.toml"), "plan"])

    assert excinfo.value.code == 2


def test_unknown_command_exits_2() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["reconcile"])

    assert excinfo.value.code == 2


def test_config_path_is_forwarded(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    config = tmp_path / "policy.toml"
    config.write_text("")
    captured: dict[str, object] = {}
    monkeypatch.setattr(cli, "apply_catalog", _fake_apply(captured))

    cli.main(["--config", str(config), "apply"])

    assert captured["config_path"] == config


def test_listing_failure_exits_1(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_plan(**_: object) -> tuple[ReconciliationPlan, Path]:
        raise RuntimeError("sanity unavailable")

    monkeypatch.setattr(cli, "plan_catalog", failing_plan)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["plan"])

    assert excinfo.value.code == 1


def test_summary_command_reads_saved_counts(
    capsys: pytest.CaptureFixture[str], tmp_path: Path
) -> None:
    summary = tmp_path / "summary.json"
    summary.write_text(json.dumps({"failed": 2, "matched": 10, "custom": 1}))

    cli.main(["summary", "--from-summary", str(summary)])

    lines = capsys.readouterr().out.splitlines()
    assert lines == ["matched  10", "failed   2", "custom   1"]


def test_summary_command_json(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], tmp_path: Path
) -> None:
    plan_file = tmp_path / "plan.json"
    plan_file.write_text("{}")
    monkeypatch.setattr(cli, "summarize_plan", lambda _path: {"matched": 3, "planned": 4})

    cli.main(["summary", "--plan", str(plan_file), "--json"])

    assert json.loads(capsys.readouterr().out) == {"matched": 3, "planned": 4}
