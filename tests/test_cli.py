from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from ledger_import import cli

runner = CliRunner()

CSV = "Date;Description;Amount\n01/03/2025;Coffee;-3,50\n02/03/2025;Salary;2.000,00\n"


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    # The runner swaps stderr per invocation; keep the package handler off it.
    monkeypatch.setattr(cli, "configure_logging", lambda *a, **k: None)


def _write(tmp_path: Path, name: str, text: str) -> Path:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_import_then_revert(tmp_path: Path, db_url: str) -> None:
    path = _write(tmp_path, "march.csv", CSV)

    res = runner.invoke(
        cli.app,
        ["import-statement", "--file", str(path), "--user-id", "u1", "--database-url", db_url],
    )

    assert res.exit_code == 0, res.output
    payload = json.loads(res.stdout)
    assert payload["imported_count"] == 2
    assert payload["state"] == "completed"

    listed = runner.invoke(cli.app, ["list-batches", "--user-id", "u1", "--database-url", db_url])
    assert listed.exit_code == 0, listed.output
    [batch] = json.loads(listed.stdout)
    assert batch["id"] == payload["batch_id"]
    assert batch["total_amount"] == "1996.50"

    res = runner.invoke(
        cli.app,
        [
            "revert-batch",
            "--user-id",
            "u1",
            "--batch-id",
            payload["batch_id"],
            "--database-url",
            db_url,
        ],
    )
    assert res.exit_code == 0, res.output
    assert json.loads(res.stdout) == {"batch_id": payload["batch_id"], "removed": 2}


def test_revert_unknown_batch(db_url: str) -> None:
    res = runner.invoke(
        cli.app,
        ["revert-batch", "--user-id", "u1", "--batch-id", "nope", "--database-url", db_url],
    )

    assert res.exit_code == 1
    assert "Error:" in res.output


def test_rejected_file_exits_non_zero(tmp_path: Path, db_url: str) -> None:
    path = _write(tmp_path, "notes.txt", "hello")

    res = runner.invoke(
        cli.app,
        ["import-statement", "--file", str(path), "--user-id", "u1", "--database-url", db_url],
    )

    assert res.exit_code == 1
    assert "Invalid file format" in res.output


def test_missing_file(tmp_path: Path, db_url: str) -> None:
    res = runner.invoke(
        cli.app,
        [
            "import-statement",
            "--file",
            str(tmp_path / "missing.csv"),
            "--user-id",
            "u1",
            "--database-url",
            db_url,
        ],
    )

    assert res.exit_code == 2
    assert "File not found" in res.output
