"""File discovery — enumerate regular files under the scan root."""

from __future__ import annotations

import logging
import os
import stat
import time
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable

from content_gate.errors import ScanAborted
from content_gate.model import ScanPhase

_logger = logging.getLogger(__name__)

# Version-control metadata and tool caches.  Applied by the CLI unless
# --no-default-excludes is given; ``scan()`` itself has no implicit excludes.
DEFAULT_EXCLUDES: tuple[str, ...] = (
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    "__pycache__",
    "node_modules",
    ".tox",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
)


@dataclass(frozen=True, slots=True)
class SourceFile:
    """A candidate file: its root-relative POSIX path, absolute path and size."""

    rel: str
    path: Path
    size: int


def normalize_patterns(patterns: Iterable[str]) -> tuple[str, ...]:
    """Strip ``./`` prefixes and trailing slashes; drop blanks; keep order."""
    out: list[str] = []
    for raw in patterns:
        pat = raw.strip().replace("\\", "/")
        while pat.startswith("./"):
            pat = pat[2:]
        pat = pat.rstrip("/")
        if pat and pat not in out:
            out.append(pat)
    return tuple(out)


def is_excluded(rel: str, patterns: tuple[str, ...]) -> bool:
    """Return True if *rel* (a POSIX path relative to root) matches a pattern.

    A pattern is tried against the full relative path, every ancestor
    directory's relative path, and the basename, so ``node_modules``,
    ``docs/generated`` and ``*.min.js`` all behave as expected.
    """
    if not patterns:
        return False
    parts = rel.split("/")
    candidates = ["/".join(parts[: i + 1]) for i in range(len(parts))]
    candidates.append(parts[-1])
    return any(fnmatchcase(c, p) for p in patterns for c in candidates)


def printable_rel(rel: str) -> str:
    """Return *rel* with undecodable filename bytes shown as ``\\xNN``.

    ``os.walk`` hands back non-UTF-8 names as surrogate escapes, which no
    report writer can encode.
    """
    try:
        rel.encode("utf-8")
    except UnicodeEncodeError:
        return os.fsencode(rel).decode("utf-8", "backslashreplace")
    return rel


def discover_files(
    root: Path,
    exclude: Iterable[str] = (),
    *,
    skip_paths: Iterable[str] = (),
    deadline: float | None = None,
) -> list[SourceFile]:
    """Recursively list regular files under *root*, sorted by relative path.

    Excluded directories are pruned without being walked.  *skip_paths* are
    exact root-relative POSIX paths, dropped without any glob or basename
    matching.  Symlinks and special files are never returned.  Any
    ``OSError`` while walking is fatal and raises ``ScanAborted``, and so is
    passing the ``time.monotonic()`` *deadline* (checked once per directory).
    """
    patterns = normalize_patterns(exclude)
    exact = frozenset(normalize_patterns(skip_paths))

    def _on_error(exc: OSError) -> None:
        raise ScanAborted(
            exc.strerror or str(exc),
            phase=ScanPhase.ENUMERATING,
            path=printable_rel(exc.filename) if isinstance(exc.filename, str) else None,
        ) from exc

    results: list[SourceFile] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        if deadline is not None and time.monotonic() > deadline:
            raise ScanAborted("timeout exceeded while enumerating files", phase=ScanPhase.ENUMERATING)
        base = Path(dirpath)
        rel_dir = printable_rel(base.relative_to(root).as_posix())
        prefix = "" if rel_dir == "." else rel_dir + "/"

        kept_dirs = []
        for name in dirnames:
            if is_excluded(prefix + printable_rel(name), patterns):
                _logger.debug("pruned excluded directory %s", prefix + printable_rel(name))
                continue
            kept_dirs.append(name)
        dirnames[:] = sorted(kept_dirs)

        for name in filenames:
            rel = prefix + printable_rel(name)
            if rel in exact:
                _logger.debug("skipped %s by exact path", rel)
                continue
            if is_excluded(rel, patterns):
                _logger.debug("skipped excluded file %s", rel)
                continue
            full = base / name
            try:
                st = os.lstat(full)
            except OSError as exc:
                raise ScanAborted(
                    exc.strerror or str(exc),
                    phase=ScanPhase.ENUMERATING,
                    path=rel,
                ) from exc
            if not stat.S_ISREG(st.st_mode):
                # symlinks, fifos, sockets, devices
                _logger.debug("skipped non-regular file %s", rel)
                continue
            if not rel.endswith(name):
                _logger.info("filename of %s is not valid UTF-8", rel)
            results.append(SourceFile(rel=rel, path=full, size=st.st_size))

    results.sort(key=lambda f: f.rel)
    return results
