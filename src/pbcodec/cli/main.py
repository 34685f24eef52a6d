"""Main CLI entry point for pbcodec."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

import structlog

from .. import __version__
from ..exceptions import PbcodecError
from .analyze import analyze_file, proto_file
from .dump import inspect_hex
from .log import configure_logging

log = structlog.get_logger(__name__)


def _run_on_file(command: Callable[[Path], None], file_arg: str, action: str) -> int:
    file_path = Path(file_arg)
    if not file_path.exists():
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        return 1

    try:
        command(file_path)
    except (PbcodecError, ImportError, SyntaxError, ValueError) as e:
        log.debug("command_failed", action=action, path=str(file_path), error=str(e))
        print(f"Error {action} file: {e}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the pbcodec CLI.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        prog="pbcodec",
        description="pbcodec: Protocol Buffer wire-format codec",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pbcodec --analyze messages.py         Show the field table of each message
  pbcodec --proto messages.py           Print proto2 schemas
  pbcodec --inspect "0a 02 08 7b"       Dump the records of an encoded payload
  pbcodec --version                     Show version
        """,
    )

    parser.add_argument(
        "--analyze",
        metavar="FILE",
        type=str,
        help="Show the field descriptor table of every message in FILE",
    )
    parser.add_argument(
        "--proto",
        metavar="FILE",
        type=str,
        help="Print a proto2 schema for every message in FILE",
    )
    parser.add_argument(
        "--inspect",
        metavar="HEX",
        type=str,
        help="Decode a hex payload without a schema and list its records",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-json", action="store_true", help="Write logs as JSON lines")
    parser.add_argument(
        "--version",
        action="version",
        version=f"pbcodec {__version__}",
    )

    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, log_json=args.log_json)

    if args.analyze:
        return _run_on_file(analyze_file, args.analyze, "analyzing")

    if args.proto:
        return _run_on_file(proto_file, args.proto, "converting")

    if args.inspect:
        try:
            inspect_hex(args.inspect)
        except ValueError as e:
            print(f"Error inspecting payload: {e}", file=sys.stderr)
            return 1
        return 0

    # If no command specified, show help
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
