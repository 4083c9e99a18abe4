"""Rule-set loading — files, inline definitions, and the rule-set contract.

Rule sets come from:

1. A JSON or YAML file (``--rules``), validated against
   ``rule_set.schema.json``.
2. Inline ``ID=PATTERN`` definitions given on the command line.

Expected file format::

    version: 1
    rules:
      - id: no-wip
        pattern: WIP-DO-NOT-SHIP
        kind: literal        # literal (default) | regex
        ignore_case: false
        description: Work-in-progress markers must not be merged.

Files ending in ``.json`` are parsed as JSON; anything else is parsed with
``yaml.safe_load`` (which also accepts JSON).
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Iterable

import yaml

from content_gate.contracts.load import iter_errors
from content_gate.errors import RuleSetError
from content_gate.model import RuleKind, Severity
from content_gate.model.rule import Rule, RuleSet

_logger = logging.getLogger(__name__)

_SCHEMA = "rule_set.schema.json"
_INLINE_ID = re.compile(r"^[A-Za-z0-9_.-]+$")


def _read_document(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise RuleSetError("rule-set file not found", source=path.as_posix()) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise RuleSetError(f"cannot read rule-set file: {exc}", source=path.as_posix()) from exc

    try:
        if path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except json.JSONDecodeError as exc:
        raise RuleSetError(
            f"invalid JSON at line {exc.lineno}: {exc.msg}", source=path.as_posix()
        ) from exc
    except yaml.YAMLError as exc:
        raise RuleSetError(f"invalid YAML: {exc}", source=path.as_posix()) from exc


def parse_rule_set(data: Any, *, source: str | None = None) -> RuleSet:
    """Validate a decoded rule-set document and build the ``RuleSet``."""
    if data is None:
        raise RuleSetError("rule-set document is empty", source=source)

    errors = iter_errors(data, _SCHEMA)
    if errors:
        first = errors[0]
        where = "/".join(str(p) for p in first.absolute_path) or "<root>"
        raise RuleSetError(f"schema violation at {where}: {first.message}", source=source)

    try:
        rules = [
            Rule(
                id=item["id"],
                pattern=item["pattern"],
                kind=RuleKind(item.get("kind", RuleKind.LITERAL.value)),
                ignore_case=bool(item.get("ignore_case", False)),
                severity=Severity(item.get("severity", Severity.BLOCKING.value)),
                description=item.get("description", ""),
            )
            for item in data["rules"]
        ]
        return RuleSet(rules=tuple(rules))
    except RuleSetError as exc:
        if source is None or exc.source is not None:
            raise
        raise RuleSetError(str(exc), source=source) from exc


def load_rule_set(path: str | Path) -> RuleSet:
    """Load and validate a rule-set file.

    Raises ``RuleSetError`` for unreadable files, syntax errors, schema
    violations, duplicate ids and invalid regular expressions.
    """
    rules_path = Path(path)
    data = _read_document(rules_path)
    rule_set = parse_rule_set(data, source=rules_path.as_posix())
    _logger.debug("loaded %d rule(s) from %s", len(rule_set), rules_path.as_posix())
    return rule_set


def parse_inline_rule(definition: str, *, kind: RuleKind = RuleKind.LITERAL) -> Rule:
    """Parse an ``ID=PATTERN`` command-line rule definition.

    Only the first ``=`` separates id from pattern, so patterns may contain
    ``=`` themselves.
    """
    rule_id, sep, pattern = definition.partition("=")
    rule_id = rule_id.strip()
    if not sep or not rule_id:
        raise RuleSetError(f"inline rule must look like ID=PATTERN, got {definition!r}")
    if not _INLINE_ID.match(rule_id):
        raise RuleSetError(f"inline rule id {rule_id!r} may only use [A-Za-z0-9_.-]")
    if not pattern:
        raise RuleSetError(f"inline rule {rule_id!r} has an empty pattern")
    return Rule(id=rule_id, pattern=pattern, kind=kind)


def build_rule_set(
    rules_file: str | Path | None = None,
    inline: Iterable[tuple[RuleKind, str]] = (),
) -> RuleSet:
    """Combine file rules and inline rules, file rules first."""
    rule_set = load_rule_set(rules_file) if rules_file is not None else RuleSet()
    extra = [parse_inline_rule(definition, kind=kind) for kind, definition in inline]
    return rule_set.extend(extra) if extra else rule_set
