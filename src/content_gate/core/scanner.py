"""Scanner — enumerates files, evaluates rules per line, builds the ScanReport."""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Iterable

from content_gate.core.config import ScanConfig
from content_gate.core.discover import SourceFile, discover_files
from content_gate.errors import InvalidTarget, ScanAborted
from content_gate.model import ScanPhase
from content_gate.model.report import ScanReport, Violation
from content_gate.model.rule import Rule, RuleSet

_logger = logging.getLogger(__name__)


class _Skipped(Exception):
    """Internal: the file is not text (binary, undecodable, too large)."""


def _enter(phase: ScanPhase, root: Path) -> ScanPhase:
    _logger.debug("scan %s: %s", root.as_posix(), phase.value)
    return phase


def read_text(f: SourceFile, config: ScanConfig) -> str:
    """Read *f* as UTF-8 text.

    Raises ``_Skipped`` for oversized, binary or undecodable files and
    ``ScanAborted`` for any I/O error.
    """
    if f.size > config.max_file_bytes:
        raise _Skipped(f"larger than {config.max_file_bytes} bytes")
    try:
        # Read one byte past the limit so a file that grew since
        # enumeration is still bounded.
        with f.path.open("rb") as fh:
            data = fh.read(config.max_file_bytes + 1)
    except OSError as exc:
        raise ScanAborted(
            exc.strerror or str(exc), phase=ScanPhase.SCANNING, path=f.rel
        ) from exc
    if len(data) > config.max_file_bytes:
        raise _Skipped(f"larger than {config.max_file_bytes} bytes")
    if b"\x00" in data[: config.binary_sniff_bytes]:
        raise _Skipped("binary (NUL byte)")
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise _Skipped(f"not UTF-8 ({exc.reason})") from exc


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, dropping a trailing ``\\r`` per line.

    ``str.splitlines`` also breaks on form feeds and Unicode separators,
    which would shift line numbers away from what editors and grep show.
    """
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [ln[:-1] if ln.endswith("\r") else ln for ln in lines]


def scan_lines(rel: str, lines: Iterable[str], rules: RuleSet) -> list[Violation]:
    """Evaluate every rule against every line; one violation per (line, rule)."""
    found: list[Violation] = []
    for lineno, line in enumerate(lines, start=1):
        for rule in rules:
            matched = rule.first_match(line)
            if matched is None:
                continue
            found.append(
                Violation(
                    path=rel,
                    line=lineno,
                    rule_id=rule.id,
                    match=matched,
                    text=line,
                )
            )
    return found


def _scan_one(
    f: SourceFile,
    rules: RuleSet,
    config: ScanConfig,
    cancelled: threading.Event,
) -> list[Violation] | None:
    """Worker body.  Returns ``None`` when the file was skipped."""
    if cancelled.is_set():
        return None
    try:
        text = read_text(f, config)
    except _Skipped as why:
        _logger.info("skipped %s: %s", f.rel, why)
        return None
    return scan_lines(f.rel, split_lines(text), rules)


def _sort_key(order: dict[str, int]):
    def key(v: Violation) -> tuple[str, int, int]:
        return (v.path, v.line, order[v.rule_id])

    return key


def scan(
    root: Path | str,
    rules: RuleSet | Iterable[Rule],
    exclude: Iterable[str] = (),
    *,
    config: ScanConfig | None = None,
    skip_paths: Iterable[str] = (),
) -> ScanReport:
    """Scan every text file under *root* against *rules*.

    This is the single entry point behind the CLI.  The result depends only
    on the rule set, the exclusions, the size limit and the file contents;
    repeated runs over an unchanged tree return equal reports.  *skip_paths*
    are exact root-relative paths left out of the scan, unlike the *exclude*
    globs which also match basenames.

    Raises
    ------
    InvalidTarget
        If *root* does not exist, is not a directory or cannot be listed.
    ScanAborted
        On any I/O fault while walking or reading, or when the timeout
        expires.  No partial report is produced.
    """
    root = Path(root)
    config = config or ScanConfig()
    if not isinstance(rules, RuleSet):
        rules = RuleSet(rules=tuple(rules))

    # ── 1. initializing ─────────────────────────────────────────────
    _enter(ScanPhase.INITIALIZING, root)
    if not root.exists():
        raise InvalidTarget(root, "does not exist")
    if not root.is_dir():
        raise InvalidTarget(root, "not a directory")
    if not os.access(root, os.R_OK | os.X_OK):
        raise InvalidTarget(root, "not readable")

    started = time.monotonic()
    deadline = None if config.timeout is None else started + config.timeout

    def _timed_out() -> bool:
        return deadline is not None and time.monotonic() > deadline

    # ── 2. enumerating ──────────────────────────────────────────────
    phase = _enter(ScanPhase.ENUMERATING, root)
    try:
        files = discover_files(root, exclude, skip_paths=skip_paths, deadline=deadline)
    except ScanAborted:
        _enter(ScanPhase.ABORTED, root)
        raise
    _logger.debug("%d candidate file(s) under %s", len(files), root.as_posix())
    if _timed_out():
        _enter(ScanPhase.ABORTED, root)
        raise ScanAborted(f"timeout of {config.timeout}s exceeded", phase=phase)

    # ── 3. scanning ─────────────────────────────────────────────────
    phase = _enter(ScanPhase.SCANNING, root)
    cancelled = threading.Event()
    violations: list[Violation] = []
    scanned = 0
    skipped = 0

    pool = ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="content-gate")
    try:
        futures: list[Future] = [
            pool.submit(_scan_one, f, rules, config, cancelled) for f in files
        ]
        remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
        done, not_done = wait(futures, timeout=remaining, return_when=FIRST_EXCEPTION)
        if not_done:
            cancelled.set()
            for fut in not_done:
                fut.cancel()
            # A worker fault takes precedence over the timeout.
            for fut in done:
                exc = fut.exception()
                if exc is not None:
                    raise exc
            _logger.warning(
                "scan of %s timed out after %.1fs with %d file(s) pending",
                root.as_posix(),
                config.timeout,
                len(not_done),
            )
            raise ScanAborted(f"timeout of {config.timeout}s exceeded", phase=phase)

        # Merge per-file partial lists in enumeration order.
        for fut in futures:
            partial = fut.result()
            if partial is None:
                skipped += 1
                continue
            scanned += 1
            violations.extend(partial)
    except ScanAborted:
        cancelled.set()
        _enter(ScanPhase.ABORTED, root)
        raise
    finally:
        pool.shutdown(wait=True, cancel_futures=True)

    if _timed_out():
        _enter(ScanPhase.ABORTED, root)
        raise ScanAborted(f"timeout of {config.timeout}s exceeded", phase=phase)

    # ── 4. reporting ────────────────────────────────────────────────
    _enter(ScanPhase.REPORTING, root)
    order = {rid: i for i, rid in enumerate(rules.ids)}
    violations.sort(key=_sort_key(order))
    report = ScanReport(
        root=root.as_posix(),
        rule_ids=tuple(rules.ids),
        violations=tuple(violations),
        files_scanned=scanned,
        files_skipped=skipped,
    )
    _enter(ScanPhase.DONE, root)
    _logger.info(
        "scan of %s: %s (%d violation(s), %d file(s) scanned, %d skipped)",
        root.as_posix(),
        report.verdict.value,
        len(report.violations),
        scanned,
        skipped,
    )
    return report
