"""Tern CLI — tern dev / tern build.

Entry point for the ``tern`` command-line interface.  With no subcommand,
the mode comes from ``TERN_MODE`` (default ``dev``).
"""

from __future__ import annotations

import argparse
import sys


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the tern CLI."""
    parser = argparse.ArgumentParser(
        prog="tern",
        description="Build tool and live-reload dev server for static sites.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # tern dev
    dev_parser = subparsers.add_parser(
        "dev",
        help="Build, watch sources and serve with live reload",
    )
    dev_parser.add_argument("root", nargs="?", default=".", help="Project root directory")
    dev_parser.add_argument("--host", default=None, help="Bind address")
    dev_parser.add_argument("--port", type=int, default=None, help="Preferred port")
    dev_parser.add_argument(
        "--policy",
        choices=("drop", "rescan"),
        default=None,
        help="What to do with changes that arrive mid-build",
    )

    # tern build
    build_parser = subparsers.add_parser(
        "build",
        help="Run one production build",
    )
    build_parser.add_argument("root", nargs="?", default=".", help="Project root directory")
    build_parser.add_argument("--output", default=None, help="Output directory")

    return parser


def _get_version() -> str:
    """Get the package version."""
    from tern import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    from tern._errors import ConfigError
    from tern.app import build, dev, run

    try:
        if args.command == "dev":
            dev(root=args.root, host=args.host, port=args.port, rebuild_policy=args.policy)
            return
        if args.command == "build":
            report = build(root=args.root, output=args.output)
        else:
            report = run()
    except ConfigError as exc:
        print(f"tern: {exc}", file=sys.stderr)
        sys.exit(2)

    if report is not None and not report.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
