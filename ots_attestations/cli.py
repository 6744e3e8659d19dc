"""Command-line interface for inspecting OpenTimestamps attestation records."""

from __future__ import annotations

import argparse
import binascii
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from .attestations import (
    DEFAULT_REGISTRY,
    BitcoinBlockHeaderAttestation,
    PendingAttestation,
    attestation_to_bytes,
    attestation_to_dict,
    deserialize_attestation,
)
from .config import URI_POLICIES, ConfigurationError, DecoderConfig, load_decoder_config
from .serialize import DeserializationError, SerializationError

logger = logging.getLogger(__name__)


class CLIError(RuntimeError):
    """Raised when CLI arguments are invalid."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OpenTimestamps attestation tool")
    parser.add_argument(
        "--config",
        default=None,
        help="YAML config file with a 'decoder' section (default: ~/.ots-attestations.yaml)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    decode_parser = subparsers.add_parser(
        "decode", help="decode a single attestation record"
    )
    decode_parser.add_argument(
        "hex", nargs="?", default=None, help="Hex-encoded attestation record"
    )
    decode_parser.add_argument(
        "--file", default=None, help="Read the raw record bytes from this file instead"
    )
    decode_parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format (default: %(default)s)",
    )
    decode_parser.add_argument(
        "--uri-policy",
        choices=URI_POLICIES,
        default=None,
        help="How to treat pending URIs that are not valid UTF-8",
    )

    pending_parser = subparsers.add_parser(
        "encode-pending", help="encode a pending attestation for a calendar URI"
    )
    pending_parser.add_argument("uri", help="Calendar server URI")

    bitcoin_parser = subparsers.add_parser(
        "encode-bitcoin", help="encode a Bitcoin block header attestation"
    )
    bitcoin_parser.add_argument("height", type=int, help="Block height")

    subparsers.add_parser("tags", help="print the table of known attestation tags")
    return parser


def _normalize_hex(value: str) -> str:
    cleaned = "".join(value.split()).lower()
    if cleaned.startswith("0x"):
        cleaned = cleaned[2:]
    return cleaned


def _read_record(args: argparse.Namespace) -> bytes:
    if args.file and args.hex:
        raise CLIError("Provide either a hex record or --file, not both")
    if args.file:
        path = Path(args.file).expanduser()
        try:
            return path.read_bytes()
        except OSError as exc:
            raise CLIError(f"Cannot read {path}: {exc}") from exc
    if not args.hex:
        raise CLIError("A hex record or --file is required")
    try:
        return binascii.unhexlify(_normalize_hex(args.hex))
    except (binascii.Error, ValueError) as exc:
        raise CLIError(f"Invalid hex record: {exc}") from exc


def cmd_decode(args: argparse.Namespace, config: DecoderConfig) -> None:
    data = _read_record(args)
    attestation = deserialize_attestation(data, config=config)
    if args.format == "json":
        print(json.dumps(attestation_to_dict(attestation), indent=2))
    else:
        print(attestation)


def cmd_encode_pending(args: argparse.Namespace) -> None:
    print(attestation_to_bytes(PendingAttestation(uri=args.uri)).hex())


def cmd_encode_bitcoin(args: argparse.Namespace) -> None:
    print(attestation_to_bytes(BitcoinBlockHeaderAttestation(height=args.height)).hex())


def cmd_tags() -> None:
    lines = ["name | tag"]
    for attestation_type in DEFAULT_REGISTRY:
        lines.append(f"{attestation_type.name} | {attestation_type.tag.hex()}")
    print("\n".join(lines))


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        overrides = {"uri_policy": getattr(args, "uri_policy", None)}
        config = load_decoder_config(config_path=args.config, overrides=overrides)
        logging.basicConfig(level=logging.DEBUG if args.verbose else config.log_level)

        if args.command == "decode":
            cmd_decode(args, config)
        elif args.command == "encode-pending":
            cmd_encode_pending(args)
        elif args.command == "encode-bitcoin":
            cmd_encode_bitcoin(args)
        elif args.command == "tags":
            cmd_tags()
        else:  # pragma: no cover - argparse enforces choices
            raise CLIError(f"Unknown command: {args.command}")
    except KeyboardInterrupt:  # pragma: no cover - interactive use
        logger.info("Interrupted by user")
    except (
        CLIError,
        ConfigurationError,
        DeserializationError,
        SerializationError,
    ) as exc:
        parser.exit(1, f"error: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
