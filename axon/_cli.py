"""AXON command-line interface.

Usage:
    echo '{"a":"b"}' | python3 -m axon encode [--mode MODE] [--compression]
    python3 -m axon encode --input data.json --delimiter tab --stats
    python3 -m axon decode --input data.axon [--indent N] [--no-strict]
    python3 -m axon version
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from . import AxonError, __version__, decode, encode
from ._constants import DELIMITERS, MODES
from ._json_adapter import dump_json_document, json_strict_load
from ._logging import setup_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="axon",
        description="AXON: compact typed text serialization",
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log mode and compression decisions to stderr")
    sub = parser.add_subparsers(dest="command")

    # ── encode ──
    enc_p = sub.add_parser("encode", help="JSON in, AXON out")
    enc_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read JSON from FILE instead of stdin")
    enc_p.add_argument("--mode", "-m", choices=MODES, default="auto",
                       help="Layout for the root array (default: auto)")
    enc_p.add_argument("--delimiter", "-d", choices=sorted(DELIMITERS), default="pipe",
                       help="Compact row delimiter (default: pipe)")
    enc_p.add_argument("--compression", "-c", action="store_true",
                       help="Emit compression directives for tables of 10+ rows")
    enc_p.add_argument("--indent", type=int, default=2, metavar="N",
                       help="Spaces per nesting level (default: 2)")
    enc_p.add_argument("--stats", action="store_true",
                       help="Append token statistics as comments")

    # ── decode ──
    dec_p = sub.add_parser("decode", help="AXON in, JSON out")
    dec_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read AXON from FILE instead of stdin")
    dec_p.add_argument("--indent", type=int, default=2, metavar="N",
                       help="JSON indentation (default: 2)")
    dec_p.add_argument("--no-strict", action="store_true",
                       help="Do not check table cells against header types")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: Optional[str]) -> bytes:
    """Read bytes from a file or stdin."""
    if filepath:
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("axon: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _cmd_encode(args: argparse.Namespace) -> None:
    value = json_strict_load(_read_input(args.input))
    print(encode(
        value,
        mode=args.mode,
        delimiter=args.delimiter,
        compression=args.compression,
        indent=args.indent,
        stats=args.stats,
    ))


def _cmd_decode(args: argparse.Namespace) -> None:
    raw = _read_input(args.input)
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        print(f"axon: invalid UTF-8 input: {e.reason}", file=sys.stderr)
        sys.exit(2)
    value = decode(text, strict=not args.no_strict)
    print(dump_json_document(value, indent=args.indent))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"axon {__version__}")
        return

    if args.verbose:
        setup_logging(logging.DEBUG)

    try:
        if args.command == "encode":
            _cmd_encode(args)
        elif args.command == "decode":
            _cmd_decode(args)
    except AxonError as e:
        print(f"axon: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except OSError as e:
        print(f"axon: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
