"""Command line front end for SealStream.

Commands:
    encrypt --kind KIND VALUE...         print a base64 token for one value
    decrypt --kind KIND TOKEN            print the value held by a token
    write FILE --kind KIND VALUE...      write values to an encrypted stream file
    read FILE --kind KIND [--count N]    read values back from a stream file

The password comes from --password, then SEALSTREAM_PASSWORD, then a prompt.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from sealstream.core.exceptions import SealStreamError
from sealstream.core.models import ValueKind
from sealstream.security import registry
from .context import build_context
from .logging_config import configure_logging


logger = logging.getLogger(__name__)

_INTEGER_KINDS = {
    ValueKind.INT8,
    ValueKind.UINT8,
    ValueKind.INT16,
    ValueKind.UINT16,
    ValueKind.INT32,
    ValueKind.UINT32,
    ValueKind.INT64,
    ValueKind.UINT64,
}
_TRUE = {"true", "1", "yes", "y", "on"}
_FALSE = {"false", "0", "no", "n", "off"}


def parse_value(texts: List[str], kind: ValueKind) -> Any:
    """Turn command line text into a value of ``kind``."""
    if kind is ValueKind.STRING_ARRAY:
        return list(texts)
    if len(texts) != 1:
        raise ValueError(f"{kind.value} takes exactly one value, got {len(texts)}")
    text = texts[0]

    if kind is ValueKind.STRING:
        return text
    if kind is ValueKind.CHAR:
        if len(text) != 1:
            raise ValueError(f"char takes a single character, got {text!r}")
        return text
    if kind is ValueKind.BOOL:
        folded = text.strip().lower()
        if folded in _TRUE:
            return True
        if folded in _FALSE:
            return False
        raise ValueError(f"not a boolean: {text!r}")
    if kind in _INTEGER_KINDS:
        return int(text)
    if kind in (ValueKind.FLOAT32, ValueKind.FLOAT64):
        return float(text)
    if kind is ValueKind.DECIMAL:
        try:
            return Decimal(text)
        except InvalidOperation:
            raise ValueError(f"not a decimal: {text!r}") from None
    if kind is ValueKind.TIMESTAMP:
        return datetime.fromisoformat(text)
    if kind is ValueKind.BYTE_ARRAY:
        return bytes.fromhex(text)
    raise ValueError(f"cannot parse {kind.value} from text")


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, list):
        return "\n".join(value)
    return str(value)


def _kind_arg(text: str) -> ValueKind:
    try:
        return registry.resolve_kind(text)
    except SealStreamError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sealstream",
        description="Password-based encryption of typed values.",
    )
    parser.add_argument(
        "--password",
        default=None,
        help="Password (default: $SEALSTREAM_PASSWORD, else prompt)",
    )
    parser.add_argument(
        "--algorithm",
        default=None,
        help="aes, des, rc2, rijndael or triple_des (default: $SEALSTREAM_ALGORITHM or aes)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    kinds = ", ".join(kind.value for kind in ValueKind)

    p = sub.add_parser("encrypt", help="Encrypt one value to a base64 token")
    p.add_argument("--kind", type=_kind_arg, default=ValueKind.STRING, help=f"One of: {kinds}")
    p.add_argument("values", nargs="+")

    p = sub.add_parser("decrypt", help="Decrypt a base64 token")
    p.add_argument("--kind", type=_kind_arg, default=ValueKind.STRING, help=f"One of: {kinds}")
    p.add_argument("token")

    p = sub.add_parser("write", help="Write values to an encrypted stream file")
    p.add_argument("path")
    p.add_argument("--kind", type=_kind_arg, default=ValueKind.STRING, help=f"One of: {kinds}")
    p.add_argument("values", nargs="+")

    p = sub.add_parser("read", help="Read values from an encrypted stream file")
    p.add_argument("path")
    p.add_argument("--kind", type=_kind_arg, default=ValueKind.STRING, help=f"One of: {kinds}")
    p.add_argument(
        "--count",
        type=int,
        default=None,
        help="Number of values to read (default: until end of stream)",
    )
    return parser


def run(args: argparse.Namespace) -> None:
    ctx = build_context(password=args.password, algorithm=args.algorithm)
    configure_logging(logging.DEBUG if args.verbose else ctx.log_level)
    enc = ctx.encryption

    if args.command == "encrypt":
        print(enc.encrypt_value(parse_value(args.values, args.kind), args.kind))

    elif args.command == "decrypt":
        print(format_value(enc.decrypt_value(args.token, args.kind)))

    elif args.command == "write":
        with enc.open_writer(args.path) as writer:
            if args.kind is ValueKind.STRING_ARRAY:
                writer.write(args.values, args.kind)
            else:
                for text in args.values:
                    writer.write(parse_value([text], args.kind), args.kind)
        logger.info("wrote %d plaintext bytes to %s", writer.bytes_written, args.path)

    elif args.command == "read":
        with enc.open_reader(args.path) as reader:
            if args.count is None:
                reader.preload()
                while not reader.at_end():
                    print(format_value(reader.read(args.kind)))
            else:
                for _ in range(args.count):
                    print(format_value(reader.read(args.kind)))


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    try:
        run(args)
    except (SealStreamError, ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    sys.exit(main())
