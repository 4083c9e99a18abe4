"""Centralized exit-code contract for the ``content-gate`` CLI.

Code  Meaning
----  -------
  0   Pass — no rule matched anywhere under the root
  1   Fail — at least one violation; the merge is blocked by policy
  2   Aborted — the check itself broke (timeout, I/O fault, usage error)
  3   Config — invalid target directory or rule set
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    PASS = 0
    FAIL = 1
    ABORTED = 2
    CONFIG_ERROR = 3
