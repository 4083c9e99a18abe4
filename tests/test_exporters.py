"""Tests for the text, GitHub and JSON report exporters."""

from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import pytest

from content_gate.contracts.load import validate_instance
from content_gate.model.report import ScanReport, Violation
from content_gate.reports.exporters import (
    export_github,
    export_json,
    export_result,
    export_text,
    summary_line,
    write_json,
)


def _report(*violations: Violation) -> ScanReport:
    return ScanReport(
        root="repo",
        rule_ids=("no-fixme", "no-xxx"),
        violations=tuple(violations),
        files_scanned=3,
        files_skipped=1,
    )


V1 = Violation(path="README.md", line=1, rule_id="no-fixme", match="FIXME", text="FIXME: this needs to be fixed.")
V2 = Violation(path="src/a,b.py", line=7, rule_id="no-xxx", match="XXX", text="x = 1  # XXX 100%")


def test_text_lines():
    assert export_text(_report(V1, V2)) == (
        "README.md:1: [no-fixme] FIXME: this needs to be fixed.\n"
        "src/a,b.py:7: [no-xxx] x = 1  # XXX 100%\n"
    )


def test_text_empty_on_pass():
    assert export_text(_report()) == ""


def test_github_annotations_escape_properties_and_data():
    out = export_github(_report(V2))
    assert out == "::error file=src/a%2Cb.py,line=7,title=no-xxx::x = 1  # XXX 100%25\n"


def test_export_result_dispatch():
    assert export_result(_report(V1), "text") == export_text(_report(V1))
    assert export_result(_report(V1), "github").startswith("::error ")
    with pytest.raises(ValueError):
        export_result(_report(V1), "xml")


def test_json_is_schema_valid_and_canonical():
    text = export_json(_report(V1, V2))
    assert text.endswith("\n")
    payload = json.loads(text)
    validate_instance(payload, "scan_report.schema.json")
    assert payload["verdict"] == "fail"
    assert payload["counts"] == {"files_scanned": 3, "files_skipped": 1, "violations": 2}
    assert payload["violations"][0] == {
        "path": "README.md",
        "line": 1,
        "rule_id": "no-fixme",
        "match": "FIXME",
        "text": "FIXME: this needs to be fixed.",
    }
    assert list(payload) == sorted(payload)


def test_schema_rejects_bad_verdict():
    payload = _report().to_dict()
    payload["verdict"] = "maybe"
    with pytest.raises(jsonschema.ValidationError):
        validate_instance(payload, "scan_report.schema.json")


def test_write_json_creates_parent(tmp_path: Path):
    out = write_json(_report(), tmp_path / "nested" / "report.json")
    assert json.loads(out.read_text(encoding="utf-8"))["verdict"] == "pass"


def test_write_json_failure_keeps_previous_report(tmp_path: Path):
    out = tmp_path / "report.json"
    out.write_text("previous\n", encoding="utf-8")
    bad = Violation(path="bad\udcff.txt", line=1, rule_id="no-fixme", match="FIXME", text="FIXME")
    with pytest.raises(UnicodeEncodeError):
        write_json(_report(bad), out)
    assert out.read_text(encoding="utf-8") == "previous\n"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["report.json"]


def test_write_json_replaces_existing(tmp_path: Path):
    out = tmp_path / "report.json"
    out.write_text("stale\n", encoding="utf-8")
    write_json(_report(V1), out)
    assert json.loads(out.read_text(encoding="utf-8"))["verdict"] == "fail"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["report.json"]


def test_summary_line():
    assert summary_line(_report()) == "content-gate: PASS (3 file(s) scanned, 1 skipped, 2 rule(s))"
    assert summary_line(_report(V1, V2)).startswith("content-gate: FAIL: 2 violation(s) in 2 file(s)")
