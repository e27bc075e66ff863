"""dagpb command-line interface.

Usage:
    python3 -m dagpb decode --input node.bin
    echo 0a0568656c6c6f | python3 -m dagpb decode --hex
    echo '{"Links":[]}' | python3 -m dagpb encode [--hex] [--prepare]
    echo '{"Links":[]}' | python3 -m dagpb validate
    python3 -m dagpb version
"""

from __future__ import annotations

import argparse
import base64
import binascii
import sys
from typing import List, Optional

from . import (
    DagPbError,
    __version__,
    decode,
    encode,
    node_from_json,
    node_to_json,
    prepare,
)
from ._json_adapter import json_strict_parse, json_to_node_value


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dagpb",
        description="DAG-PB codec — encode, decode and validate merkle-DAG nodes",
    )
    sub = parser.add_subparsers(dest="command")

    # ── decode ──
    dec_p = sub.add_parser("decode", help="Decode DAG-PB bytes to JSON")
    dec_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read bytes from FILE instead of stdin")
    dec_p.add_argument("--hex", action="store_true",
                       help="Input is hex text rather than raw bytes")
    dec_p.add_argument("--legacy", action="store_true",
                       help="Older schema revision: default Name, Tsize and Data")

    # ── encode ──
    enc_p = sub.add_parser("encode", help="Encode a JSON node (base64 output)")
    enc_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read JSON from FILE instead of stdin")
    enc_p.add_argument("--hex", action="store_true",
                       help="Print hex instead of base64")
    enc_p.add_argument("--prepare", action="store_true",
                       help="Normalize (sort links, drop empty Data) before encoding")

    # ── validate ──
    val_p = sub.add_parser("validate", help="Check a JSON node for canonical form")
    val_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read JSON from FILE instead of stdin")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: Optional[str]) -> bytes:
    """Read bytes from a file or stdin."""
    if filepath:
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("dagpb: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _cmd_decode(args: argparse.Namespace) -> None:
    raw = _read_input(args.input)
    if args.hex:
        raw = binascii.unhexlify(b"".join(raw.split()))
    print(node_to_json(decode(raw, legacy=args.legacy)))


def _cmd_encode(args: argparse.Namespace) -> None:
    raw = _read_input(args.input)
    if args.prepare:
        # prepare() takes loose input, so skip the strict JSON → PBNode step.
        node = prepare(json_to_node_value(json_strict_parse(raw)))
    else:
        node = node_from_json(raw)
    out = encode(node)
    if args.hex:
        print(out.hex())
    else:
        print(base64.b64encode(out).decode("ascii"))


def _cmd_validate(args: argparse.Namespace) -> None:
    node_from_json(_read_input(args.input))
    print("OK")


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"dagpb {__version__}")
        return

    try:
        if args.command == "decode":
            _cmd_decode(args)
        elif args.command == "encode":
            _cmd_encode(args)
        elif args.command == "validate":
            _cmd_validate(args)
    except DagPbError as e:
        print(f"dagpb: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except binascii.Error as e:
        print(f"dagpb: bad hex input: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
