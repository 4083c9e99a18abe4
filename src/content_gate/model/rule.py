"""Rule and RuleSet — immutable forbidden-pattern definitions."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator

from content_gate.errors import RuleSetError

from . import RuleKind, Severity


@dataclass(frozen=True, slots=True)
class Rule:
    """A single named pattern whose presence in scanned text blocks the gate.

    The pattern is compiled once at construction; an invalid regular
    expression raises ``RuleSetError``.
    """

    id: str
    pattern: str
    kind: RuleKind = RuleKind.LITERAL
    ignore_case: bool = False
    severity: Severity = Severity.BLOCKING
    description: str = ""
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.id:
            raise RuleSetError("rule id must not be empty")
        if not self.pattern:
            raise RuleSetError(f"rule {self.id!r} has an empty pattern")
        source = re.escape(self.pattern) if self.kind is RuleKind.LITERAL else self.pattern
        flags = re.IGNORECASE if self.ignore_case else 0
        try:
            compiled = re.compile(source, flags)
        except re.error as exc:
            raise RuleSetError(
                f"rule {self.id!r} has an invalid regular expression: {exc}"
            ) from exc
        object.__setattr__(self, "regex", compiled)

    def first_match(self, line: str) -> str | None:
        """Return the first matched substring in *line*, or ``None``."""
        m = self.regex.search(line)
        if m is None:
            return None
        return m.group(0)

    def to_dict(self) -> dict:
        d: dict = {
            "id": self.id,
            "pattern": self.pattern,
            "kind": self.kind.value,
            "severity": self.severity.value,
        }
        if self.ignore_case:
            d["ignore_case"] = True
        if self.description:
            d["description"] = self.description
        return d


@dataclass(frozen=True, slots=True)
class RuleSet:
    """Ordered, id-unique sequence of rules.

    Order never changes the verdict; it only decides report order when
    several rules match the same line.
    """

    rules: tuple[Rule, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for rule in self.rules:
            if rule.id in seen:
                raise RuleSetError(f"duplicate rule id {rule.id!r}")
            seen.add(rule.id)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    @property
    def ids(self) -> list[str]:
        return [r.id for r in self.rules]

    def extend(self, more: list[Rule] | tuple[Rule, ...]) -> RuleSet:
        """Return a new set with *more* appended after the existing rules."""
        return RuleSet(rules=self.rules + tuple(more))
