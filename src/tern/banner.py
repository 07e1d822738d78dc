"""Startup banner — mode-aware status output.

Prints a branded startup banner with the source and output roots, the
watched targets, and (in dev mode) the server URL.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from tern._console import BOLD, COLOR, CYAN, DIM, GREEN, RESET, TEAL, YELLOW

if TYPE_CHECKING:
    from tern.config import TernConfig


_MODE_STYLES: dict[str, tuple[str, str]] = {
    "dev": (GREEN, "dev"),
    "prod": (YELLOW, "prod"),
}


def _mode_badge(mode: str) -> str:
    """Return a styled [mode] badge."""
    color, label = _MODE_STYLES.get(mode, (DIM, mode))
    return f"{color}[{label}]{RESET}"


def _clickable_url(url: str) -> str:
    """Wrap *url* in an OSC 8 hyperlink escape if the terminal supports it."""
    if not COLOR:
        return url
    return f"\033]8;;{url}\033\\{BOLD}{CYAN}{url}{RESET}\033]8;;\033\\"


def print_banner(
    config: TernConfig,
    *,
    port: int | None = None,
    watched: tuple[str, ...] = (),
    build_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> None:
    """Print the Tern startup banner to stderr.

    Args:
        config: Resolved TernConfig.
        port: The port actually bound (dev mode only).  May differ from
            ``config.port`` when the preferred port was busy.
        watched: Labels of the roots being watched.
        build_ms: Duration of the initial build in milliseconds.
        warnings: Optional list of warning messages to display.

    """
    from tern import __version__

    badge = _mode_badge(config.mode)
    lines: list[str] = [
        "",
        f"  {TEAL}{BOLD}~v~{RESET}  Tern {DIM}v{__version__}{RESET}  {badge}",
        f"  {DIM}{'─' * 43}{RESET}",
    ]

    timing = f" {DIM}in {build_ms:.0f}ms{RESET}" if build_ms > 0 else ""
    lines.append(f"  {DIM}├─{RESET} initial build{timing}")
    lines.append(f"  {DIM}├─{RESET} sources: {DIM}{config.source_path}{RESET}")

    if watched:
        lines.append(f"  {DIM}├─{RESET} watching: {', '.join(watched)}")
        lines.append(f"  {DIM}├─{RESET} {GREEN}live{RESET} — SSE on {DIM}/__reload{RESET}")

    lines.append(f"  {DIM}└─{RESET} output: {DIM}{config.output_path}{RESET}")

    if port is not None:
        url = f"http://{config.host}:{port}"
        lines.append("")
        lines.append(f"  {_clickable_url(url)}")
        if port != config.port:
            lines.append(f"  {DIM}(port {config.port} was busy){RESET}")

    if warnings:
        lines.append("")
        lines.extend(f"  {YELLOW}!{RESET} {w}" for w in warnings)

    lines.append("")

    print("\n".join(lines), file=sys.stderr)
