"""Console output — timestamped status lines on stderr.

Every recovered error in tern surfaces here and nowhere else.  Detects
``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
import time


# ---------------------------------------------------------------------------
# ANSI helpers — respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


COLOR = _supports_color()

RESET = "\033[0m" if COLOR else ""
BOLD = "\033[1m" if COLOR else ""
DIM = "\033[2m" if COLOR else ""
RED = "\033[31m" if COLOR else ""
CYAN = "\033[36m" if COLOR else ""
GREEN = "\033[32m" if COLOR else ""
YELLOW = "\033[33m" if COLOR else ""
TEAL = "\033[38;5;37m" if COLOR else ""


def _stamp() -> str:
    return f"{DIM}[{time.strftime('%H:%M:%S')}]{RESET}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def info(message: str) -> None:
    """Print a timestamped status line."""
    print(f"{_stamp()} {message}", file=sys.stderr)


def success(message: str) -> None:
    """Print a timestamped line with a green check."""
    print(f"{_stamp()} {GREEN}✓{RESET} {message}", file=sys.stderr)


def warn(message: str) -> None:
    """Print a timestamped warning.  Used for recovered, non-fatal problems."""
    print(f"{_stamp()} {YELLOW}!{RESET} {message}", file=sys.stderr)


def error(message: str) -> None:
    """Print a timestamped error line."""
    print(f"{_stamp()} {RED}✗{RESET} {message}", file=sys.stderr)
