"""Enums shared across the scanner, rule loader and report layers."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Rule severity.  Every rule blocks the gate; there is no warning tier."""

    BLOCKING = "blocking"


class RuleKind(str, Enum):
    """How a rule's pattern is interpreted."""

    LITERAL = "literal"
    REGEX = "regex"


class Verdict(str, Enum):
    """Binary outcome of one scan."""

    PASS = "pass"
    FAIL = "fail"


class ScanPhase(str, Enum):
    """Linear lifecycle of a single scan invocation."""

    INITIALIZING = "initializing"
    ENUMERATING = "enumerating"
    SCANNING = "scanning"
    REPORTING = "reporting"
    DONE = "done"
    ABORTED = "aborted"
