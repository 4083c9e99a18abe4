"""CLI entry-point for content_gate.

Usage:
    python -m content_gate <root> --rules rules.yaml
    python -m content_gate scan <root> [--rules FILE] [--rule ID=TEXT ...] [--rule-regex ID=REGEX ...]
                                [--exclude GLOB ...] [--no-default-excludes]
                                [--max-file-bytes N] [--timeout SECONDS] [--workers N]
                                [--json-out FILE] [--format text|github] [-v]
    python -m content_gate rules <file> [--json]

Exit codes: 0 pass, 1 fail, 2 aborted, 3 configuration error.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from content_gate import __version__
from content_gate.core.config import ScanConfig
from content_gate.core.discover import DEFAULT_EXCLUDES
from content_gate.core.scanner import scan
from content_gate.errors import InvalidTarget, RuleSetError, ScanAborted
from content_gate.model import RuleKind
from content_gate.reports.exporters import EXPORT_FORMATS, export_result, summary_line, write_json
from content_gate.rules import build_rule_set, load_rule_set
from content_gate.utils.exit_codes import ExitCode
from content_gate.utils.json_norm import stable_json_dump

_logger = logging.getLogger("content_gate")

_KNOWN_COMMANDS = {"scan", "rules"}

# Scan options whose value is the next token.
_VALUE_OPTIONS = frozenset(
    {
        "--rules",
        "--rule",
        "--rule-regex",
        "--exclude",
        "--max-file-bytes",
        "--timeout",
        "--workers",
        "--json-out",
        "--format",
    }
)


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _literal_rule(definition: str) -> tuple[RuleKind, str]:
    return (RuleKind.LITERAL, definition)


def _regex_rule(definition: str) -> tuple[RuleKind, str]:
    return (RuleKind.REGEX, definition)


def _add_scan_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("root", type=Path, help="Directory to scan (the checked-out tree).")
    p.add_argument(
        "--rules",
        dest="rules_file",
        type=Path,
        default=None,
        help="Rule-set file (.json, or YAML for any other suffix).",
    )
    p.add_argument(
        "--rule",
        dest="inline_rules",
        action="append",
        type=_literal_rule,
        default=[],
        metavar="ID=TEXT",
        help="Inline literal rule; may be repeated.",
    )
    p.add_argument(
        "--rule-regex",
        dest="inline_rules",
        action="append",
        type=_regex_rule,
        metavar="ID=REGEX",
        help="Inline regular-expression rule; may be repeated.",
    )
    p.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="GLOB",
        help="Glob of paths to skip (matched against relative path, ancestors and basename).",
    )
    p.add_argument(
        "--no-default-excludes",
        action="store_true",
        default=False,
        help=f"Do not skip {', '.join(DEFAULT_EXCLUDES)}.",
    )
    p.add_argument("--max-file-bytes", type=int, default=None, help="Skip files larger than this.")
    p.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Abort the whole scan after this many seconds (0 = no limit).",
    )
    p.add_argument("--workers", type=int, default=None, help="Scanner worker threads.")
    p.add_argument(
        "--json-out",
        type=Path,
        default=None,
        help="Also write the machine-readable report to this file.",
    )
    p.add_argument(
        "--format",
        dest="fmt",
        choices=EXPORT_FORMATS,
        default="text",
        help="Stdout format for violations.",
    )
    p.add_argument("-v", "--verbose", action="count", default=0)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="content-gate",
        description="Fail a pre-merge check when forbidden text appears in the tree.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="command")

    scan_p = sub.add_parser("scan", help="Scan a directory against a rule set.")
    _add_scan_args(scan_p)

    rules_p = sub.add_parser("rules", help="Validate a rule-set file and list its rules.")
    rules_p.add_argument("file", type=Path)
    rules_p.add_argument(
        "--json",
        dest="json_out",
        action="store_true",
        default=False,
        help="Print the normalized rules as JSON.",
    )
    rules_p.add_argument("-v", "--verbose", action="count", default=0)
    return p


def _build_default_parser() -> argparse.ArgumentParser:
    """Parser for ``content-gate <root> ...`` (implicit ``scan``).

    Argparse subparsers greedily consume the first positional token, so the
    bare form gets its own parser.
    """
    p = argparse.ArgumentParser(
        prog="content-gate",
        description="Fail a pre-merge check when forbidden text appears in the tree.",
    )
    _add_scan_args(p)
    p.set_defaults(command="scan")
    return p


def _effective_excludes(args: argparse.Namespace) -> list[str]:
    excludes = [] if args.no_default_excludes else list(DEFAULT_EXCLUDES)
    excludes.extend(args.exclude)
    return excludes


def _rules_file_skip(args: argparse.Namespace) -> list[str]:
    """Exact root-relative path of the rule file, when it lies under the root."""
    if args.rules_file is None:
        return []
    try:
        rel = args.rules_file.resolve().relative_to(args.root.resolve())
    except ValueError:
        return []
    # Never let the rule file trip its own gate.
    _logger.info("excluding rule-set file %s from the scan", rel.as_posix())
    return [rel.as_posix()]


def _handle_scan(args: argparse.Namespace) -> int:
    try:
        config = ScanConfig.from_env().with_overrides(
            max_file_bytes=args.max_file_bytes,
            timeout=args.timeout,
            workers=args.workers,
        )
    except ValueError as exc:
        print(f"error: invalid scan configuration: {exc}", file=sys.stderr)
        return ExitCode.CONFIG_ERROR

    try:
        rules = build_rule_set(args.rules_file, args.inline_rules)
        report = scan(
            args.root,
            rules,
            _effective_excludes(args),
            config=config,
            skip_paths=_rules_file_skip(args),
        )
    except (InvalidTarget, RuleSetError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return ExitCode.CONFIG_ERROR
    except ScanAborted as exc:
        print(f"error: {exc}", file=sys.stderr)
        print("content-gate: ABORTED (check inconclusive)", file=sys.stderr)
        return ExitCode.ABORTED
    except Exception as exc:
        _logger.debug("scan failed", exc_info=True)
        print(f"error: unexpected failure: {exc!r}", file=sys.stderr)
        print("content-gate: ABORTED (check inconclusive)", file=sys.stderr)
        return ExitCode.ABORTED

    # Past this point the verdict is known; failing to report it still makes
    # the check inconclusive, never a policy FAIL.
    try:
        if args.json_out is not None:
            write_json(report, args.json_out)
        sys.stdout.write(export_result(report, args.fmt))
        sys.stdout.flush()
    except Exception as exc:
        _logger.debug("reporting failed", exc_info=True)
        print(f"error: cannot write report: {exc}", file=sys.stderr)
        print("content-gate: ABORTED (check inconclusive)", file=sys.stderr)
        return ExitCode.ABORTED

    print(summary_line(report), file=sys.stderr)
    return ExitCode.PASS if report.passed else ExitCode.FAIL


def _handle_rules(args: argparse.Namespace) -> int:
    try:
        rule_set = load_rule_set(args.file)
    except RuleSetError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return ExitCode.CONFIG_ERROR

    if args.json_out:
        stable_json_dump([r.to_dict() for r in rule_set], sys.stdout)
        return ExitCode.PASS

    if not len(rule_set):
        print("No rules defined.", file=sys.stderr)
    for rule in rule_set:
        flags = rule.kind.value + (", ignore-case" if rule.ignore_case else "")
        line = f"{rule.id:24s}  {rule.pattern!r}  ({flags})"
        if rule.description:
            line += f"  {rule.description}"
        print(line)
    return ExitCode.PASS


def _first_positional(argv: list[str]) -> str | None:
    """First token that is neither an option nor an option's value."""
    tokens = iter(argv)
    for tok in tokens:
        if tok == "--":
            return next(tokens, None)
        if tok.startswith("-"):
            if tok in _VALUE_OPTIONS:
                next(tokens, None)
            continue
        return tok
    return None


def main(argv: list[str] | None = None) -> int:
    """Entry-point — returns an exit code (0 pass, 1 fail, 2 aborted, 3 config)."""
    effective_argv = list(argv) if argv is not None else sys.argv[1:]

    first_positional = _first_positional(effective_argv)
    if first_positional and first_positional not in _KNOWN_COMMANDS:
        parser = _build_default_parser()
    else:
        parser = _build_parser()
    args = parser.parse_args(effective_argv)

    if args.command is None:
        parser.print_usage(sys.stderr)
        print("error: a root directory or a command is required", file=sys.stderr)
        return ExitCode.ABORTED

    _configure_logging(args.verbose)

    if args.command == "rules":
        return _handle_rules(args)
    return _handle_scan(args)


if __name__ == "__main__":
    raise SystemExit(main())
