"""Render backend outcomes for the pushing user.

Git relays a post-receive hook's stdout to the client as ``remote:`` lines,
so the report is the pusher's only view of what was triggered.
"""

import sys
from collections.abc import Sequence
from typing import TextIO

from ci_hook.schemas.backends import BackendResult


def _single_line(summary: str) -> str:
    # Multi-line error text is folded so each backend keeps exactly one line.
    parts = summary.splitlines()
    if len(parts) <= 1:
        return summary.rstrip("\r\n")
    return " ".join(part.strip() for part in parts if part.strip())


def format_report(results: Sequence[BackendResult]) -> str:
    """Format one tab-indented ``<backend>: <summary>`` line per result.

    The block is bracketed by blank lines and lists every result in order,
    successful or not.
    """
    lines = [
        "",
        *(f"\t{result.backend}: {_single_line(result.summary)}" for result in results),
        "",
    ]
    return "\n".join(lines) + "\n"


def write_report(results: Sequence[BackendResult], stream: TextIO | None = None) -> None:
    """Write the report block to ``stream`` (stdout by default)."""
    out = stream or sys.stdout
    out.write(format_report(results))
    out.flush()
