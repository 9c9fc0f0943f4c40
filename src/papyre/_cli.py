"""Papyre CLI — papyre build / papyre watch.

Entry point for the ``papyre`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the papyre CLI."""
    parser = argparse.ArgumentParser(
        prog="papyre",
        description="Render a directory of content through functions exported by a Python bundle.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (
        ("build", "Compile the bundle once and write rendered entries"),
        ("watch", "Rebuild incrementally whenever code or content changes"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "config",
            nargs="?",
            default=".",
            help="Config file, or directory containing papyre.yaml / papyre.toml",
        )
        sub.add_argument("--entry", default=None, help="Entry module (overrides the config file)")
        sub.add_argument("--output", default="dist", help="Output directory")
        sub.add_argument(
            "--verbose", action="store_true", help="Print per-stage timing for every cycle",
        )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from papyre import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from papyre._errors import PapyreError
    from papyre.app import run_build, run_watch
    from papyre.banner import print_failed

    try:
        if args.command == "build":
            run_build(args.config, entry=args.entry, output=args.output, verbose=args.verbose)
        elif args.command == "watch":
            run_watch(args.config, entry=args.entry, output=args.output, verbose=args.verbose)
    except PapyreError as exc:
        print_failed(exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
