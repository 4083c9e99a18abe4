"""Report exporters for a ``ScanReport``.

Supports:

*  **text** — one ``<path>:<line>: [<rule-id>] <text>`` line per violation.
*  **github** — GitHub Actions workflow commands, so the hosting platform
   annotates the pull request from plain stdout.
*  **JSON** — machine-readable, validated against ``scan_report.schema.json``.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from content_gate.contracts.load import validate_instance
from content_gate.model.report import ScanReport, Violation
from content_gate.utils.json_norm import stable_json_dumps

EXPORT_FORMATS = ("text", "github")


# ════════════════════════════════════════════════════════════════════
# text exporter
# ════════════════════════════════════════════════════════════════════


def export_text(report: ScanReport) -> str:
    """Export violations as grep-style lines (empty string on pass)."""
    return "".join(v.format() + "\n" for v in report.violations)


# ════════════════════════════════════════════════════════════════════
# GitHub annotations
# ════════════════════════════════════════════════════════════════════


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(":", "%3A").replace(",", "%2C")


def github_annotation(v: Violation) -> str:
    return (
        f"::error file={_escape_property(v.path)},line={v.line},"
        f"title={_escape_property(v.rule_id)}::{_escape_data(v.text)}"
    )


def export_github(report: ScanReport) -> str:
    """Export violations as ``::error`` workflow commands."""
    return "".join(github_annotation(v) + "\n" for v in report.violations)


# ════════════════════════════════════════════════════════════════════
# JSON exporter
# ════════════════════════════════════════════════════════════════════


def export_json(report: ScanReport, *, indent: int = 2) -> str:
    """Export a ``ScanReport`` as canonical JSON, schema-checked first."""
    payload = report.to_dict()
    validate_instance(payload, "scan_report.schema.json")
    return stable_json_dumps(payload, indent=indent)


def write_json(report: ScanReport, path: Path) -> Path:
    """Write the JSON report to *path*, creating parent directories.

    The report is rendered in full first, then written to a temp file next to
    *path* and moved into place with ``os.replace``, so a failed write never
    leaves a truncated report behind.
    """
    text = export_json(report)
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
        delete=False,
    ) as tf:
        tmp_path = Path(tf.name)
    try:
        tmp_path.write_text(text, encoding="utf-8")
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return path


def export_result(report: ScanReport, fmt: str = "text") -> str:
    """Dispatch to the stdout exporter named by *fmt*."""
    if fmt == "text":
        return export_text(report)
    if fmt == "github":
        return export_github(report)
    raise ValueError(f"unknown export format: {fmt!r} (expected one of {EXPORT_FORMATS})")


def summary_line(report: ScanReport) -> str:
    """One-line human summary for stderr."""
    if report.passed:
        return (
            f"content-gate: PASS ({report.files_scanned} file(s) scanned, "
            f"{report.files_skipped} skipped, {len(report.rule_ids)} rule(s))"
        )
    files = len({v.path for v in report.violations})
    return (
        f"content-gate: FAIL: {len(report.violations)} violation(s) in {files} file(s) "
        f"({report.files_scanned} scanned, {report.files_skipped} skipped)"
    )
