"""Error taxonomy for the content gate.

``InvalidTarget`` and ``RuleSetError`` are configuration problems the caller
has to fix.  ``ScanAborted`` is an infrastructure fault: the check is
inconclusive and may be retried as a whole.  A failing verdict is *not* an
error and never raises.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from content_gate.model import ScanPhase


class ContentGateError(Exception):
    """Base class for every error raised by ``content_gate``."""


class InvalidTarget(ContentGateError):
    """Raised when the scan root is missing or is not a directory."""

    def __init__(self, root: Path, reason: str) -> None:
        self.root = root
        self.reason = reason
        super().__init__(f"invalid scan root {root.as_posix()}: {reason}")


class RuleSetError(ContentGateError):
    """Raised for unreadable or malformed rule definitions."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        self.source = source
        prefix = f"{source}: " if source else ""
        super().__init__(f"{prefix}{message}")


class ScanAborted(ContentGateError):
    """Raised when the scan cannot complete (I/O fault or timeout)."""

    def __init__(
        self,
        message: str,
        *,
        phase: ScanPhase,
        path: str | None = None,
    ) -> None:
        self.phase = phase
        self.path = path
        where = f" ({path})" if path else ""
        super().__init__(f"scan aborted during {phase.value}{where}: {message}")
