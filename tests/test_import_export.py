"""
tests/test_import_export.py
"""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from workjournal.journal import app, get_store


# ───────────────────────── helpers ────────────────────────────────
@pytest.fixture
def runner():
    return app.test_cli_runner()


def _write(tmp_path: Path, payload) -> Path:
    p = tmp_path / "entries.json"
    p.write_text(json.dumps(payload), encoding="utf-8")
    return p


# ───────────────────────── tests ──────────────────────────────────
def test_init_db_is_idempotent(runner):
    for _ in range(2):
        res = runner.invoke(args=["init-db"])
        assert res.exit_code == 0, res.output
        assert "Database ready" in res.output


def test_export_writes_all_entries(client, runner, tmp_path):
    client.post("/", data={"date": "2024-06-02", "type": "work", "text": "one"})
    client.post("/", data={"date": "2024-06-05", "type": "learning", "text": "two"})

    out = tmp_path / "dump.json"
    res = runner.invoke(args=["export", str(out)])
    assert res.exit_code == 0, res.output

    data = json.loads(out.read_text(encoding="utf-8"))
    assert [(e["date"], e["type"], e["text"]) for e in data] == [
        ("2024-06-02", "work", "one"),
        ("2024-06-05", "learning", "two"),
    ]


def test_import_creates_fresh_entries(client, runner, tmp_path):
    src = _write(tmp_path, [
        {"id": 99, "date": "2024-06-02", "type": "work", "text": "imported"},
        {"date": "2024-06-08", "type": "interesting-thing", "text": "also"},
    ])
    res = runner.invoke(args=["import", str(src)])
    assert res.exit_code == 0, res.output
    assert "Imported 2 entries." in res.output

    entries = get_store().find_all()
    assert [e.text for e in entries] == ["imported", "also"]
    assert entries[0].id != 99


def test_import_is_all_or_nothing(client, runner, tmp_path):
    src = _write(tmp_path, [
        {"date": "2024-06-02", "type": "work", "text": "fine"},
        {"date": "2024-06-02", "type": "invalid", "text": "broken"},
    ])
    res = runner.invoke(args=["import", str(src)])
    assert res.exit_code != 0
    assert "Entry #2" in res.output
    assert get_store().find_all() == []


def test_import_rejects_non_list(client, runner, tmp_path):
    src = _write(tmp_path, {"date": "2024-06-02"})
    res = runner.invoke(args=["import", str(src)])
    assert res.exit_code != 0
    assert "Expected a JSON list" in res.output
