"""Scan configuration dataclass."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping

# Default whole-scan timeout in seconds.  Override with
# CONTENT_GATE_TIMEOUT env var (0 = no limit).
_DEFAULT_TIMEOUT = 300.0

_DEFAULT_WORKERS = 4


@dataclass(frozen=True)
class ScanConfig:
    """Immutable resource limits for one scan.

    ``timeout`` of ``None`` disables the wall-clock deadline.
    """

    max_file_bytes: int = 2_000_000  # 2 MB safety limit
    binary_sniff_bytes: int = 8192
    timeout: float | None = _DEFAULT_TIMEOUT
    workers: int = _DEFAULT_WORKERS

    def __post_init__(self) -> None:
        if self.max_file_bytes < 0:
            raise ValueError("max_file_bytes must be >= 0")
        if self.binary_sniff_bytes <= 0:
            raise ValueError("binary_sniff_bytes must be > 0")
        if self.workers < 1:
            raise ValueError("workers must be >= 1")
        if self.timeout is not None and self.timeout < 0:
            raise ValueError("timeout must be >= 0")
        if self.timeout == 0:
            object.__setattr__(self, "timeout", None)  # no limit

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> ScanConfig:
        """Build a config honouring ``CONTENT_GATE_TIMEOUT`` / ``CONTENT_GATE_WORKERS``."""
        if env is None:
            env = os.environ
        cfg = cls()
        timeout_str = env.get("CONTENT_GATE_TIMEOUT", "").strip()
        if timeout_str:
            cfg = replace(cfg, timeout=float(timeout_str))
        workers_str = env.get("CONTENT_GATE_WORKERS", "").strip()
        if workers_str:
            cfg = replace(cfg, workers=int(workers_str))
        return cfg

    def with_overrides(self, **overrides: object) -> ScanConfig:
        """Return a copy with every non-``None`` override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self
