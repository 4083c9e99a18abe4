"""content_gate — rule-based pre-merge text gate."""

__all__ = [
    "__version__",
    "scan",
    "load_rule_set",
    "Rule",
    "RuleSet",
    "ScanConfig",
    "ScanReport",
    "Violation",
    "InvalidTarget",
    "RuleSetError",
    "ScanAborted",
]
__version__ = "0.1.0"

from content_gate.core.config import ScanConfig  # noqa: E402
from content_gate.core.scanner import scan  # noqa: E402
from content_gate.errors import InvalidTarget, RuleSetError, ScanAborted  # noqa: E402
from content_gate.model.report import ScanReport, Violation  # noqa: E402
from content_gate.model.rule import Rule, RuleSet  # noqa: E402
from content_gate.rules import load_rule_set  # noqa: E402
