"""Tests for file discovery and exclusion globs."""

from __future__ import annotations

import os
import sys
import time
from pathlib import Path

import pytest

from content_gate.core.discover import (
    DEFAULT_EXCLUDES,
    discover_files,
    is_excluded,
    normalize_patterns,
    printable_rel,
)
from content_gate.errors import ScanAborted
from content_gate.model import ScanPhase


class TestExclusionMatching:
    @pytest.mark.parametrize(
        "rel, patterns, expected",
        [
            (".git/config", (".git",), True),
            ("src/.git/config", (".git",), True),
            ("src/app.py", (".git",), False),
            ("web/app.min.js", ("*.min.js",), True),
            ("docs/gen/a/b.md", ("docs/gen",), True),
            ("docs/general.md", ("docs/gen",), False),
            ("README.md", (), False),
            ("Vendor/x.txt", ("vendor",), False),
        ],
    )
    def test_is_excluded(self, rel: str, patterns: tuple[str, ...], expected: bool):
        assert is_excluded(rel, patterns) is expected

    def test_normalize_patterns_strips_and_dedupes(self):
        assert normalize_patterns(["./build/", "build", "  ", "a\\b"]) == ("build", "a/b")


class TestDiscoverFiles:
    def test_sorted_by_relative_path(self, write_tree):
        root = write_tree({"b.txt": "", "a/z.txt": "", "a.txt": "", "Z.txt": ""})
        rels = [f.rel for f in discover_files(root)]
        assert rels == ["Z.txt", "a.txt", "a/z.txt", "b.txt"]

    def test_prunes_default_excludes(self, write_tree):
        root = write_tree(
            {
                ".git/HEAD": "ref: refs/heads/main\n",
                "node_modules/pkg/index.js": "",
                "src/app.py": "",
            }
        )
        rels = [f.rel for f in discover_files(root, DEFAULT_EXCLUDES)]
        assert rels == ["src/app.py"]

    def test_records_size(self, write_tree):
        root = write_tree({"a.txt": "12345"})
        (f,) = discover_files(root)
        assert f.size == 5
        assert f.path == root / "a.txt"

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="no named pipes")
    def test_skips_special_files(self, write_tree):
        root = write_tree({"a.txt": ""})
        os.mkfifo(root / "pipe")
        assert [f.rel for f in discover_files(root)] == ["a.txt"]

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
    def test_skips_symlinks(self, write_tree, tmp_path: Path):
        root = write_tree({"a.txt": ""})
        os.symlink(root / "a.txt", root / "b.txt")
        assert [f.rel for f in discover_files(root)] == ["a.txt"]

    def test_skip_paths_match_exactly(self, write_tree):
        root = write_tree({"rules.yaml": "", "sub/rules.yaml": "", "sub/x.txt": ""})
        rels = [f.rel for f in discover_files(root, skip_paths=["./rules.yaml"])]
        assert rels == ["sub/rules.yaml", "sub/x.txt"]

    def test_expired_deadline_aborts_enumeration(self, write_tree):
        root = write_tree({"a/b.txt": ""})
        with pytest.raises(ScanAborted) as info:
            discover_files(root, deadline=time.monotonic() - 1.0)
        assert info.value.phase is ScanPhase.ENUMERATING
        assert "timeout" in str(info.value)


class TestPrintableRel:
    def test_plain_names_unchanged(self):
        assert printable_rel("src/café.py") == "src/café.py"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX filename encoding")
    def test_surrogate_escapes_become_hex(self):
        assert printable_rel(os.fsdecode(b"dir/bad\xff.txt")) == "dir/bad\\xff.txt"
