"""Violation and ScanReport — the terminal artifacts of a scan."""

from __future__ import annotations

from dataclasses import dataclass

from . import Verdict


@dataclass(frozen=True, slots=True)
class Violation:
    """One rule matching one line of one file."""

    path: str          # relative to the scan root, POSIX separators
    line: int          # 1-based
    rule_id: str
    match: str         # first matched substring
    text: str          # full line, without the line terminator

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "line": self.line,
            "rule_id": self.rule_id,
            "match": self.match,
            "text": self.text,
        }

    def format(self) -> str:
        return f"{self.path}:{self.line}: [{self.rule_id}] {self.text}"


@dataclass(frozen=True, slots=True)
class ScanReport:
    """Deterministically ordered violations plus the overall verdict.

    Corresponds to ``scan_report.schema.json``.
    """

    root: str
    rule_ids: tuple[str, ...]
    violations: tuple[Violation, ...]
    files_scanned: int = 0
    files_skipped: int = 0

    @property
    def verdict(self) -> Verdict:
        return Verdict.FAIL if self.violations else Verdict.PASS

    @property
    def passed(self) -> bool:
        return self.verdict is Verdict.PASS

    # ── serialisation ───────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "schema_version": "scan_report_v1",
            "root": self.root,
            "rules": list(self.rule_ids),
            "verdict": self.verdict.value,
            "counts": {
                "files_scanned": self.files_scanned,
                "files_skipped": self.files_skipped,
                "violations": len(self.violations),
            },
            "violations": [v.to_dict() for v in self.violations],
        }
