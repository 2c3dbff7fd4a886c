"""
Command line decoder for station frames.

Decodes one or more frames and prints one JSON document per frame.  Frames are
taken from the command line or, when none are given, from stdin (one per
line).  Input is hex by default (whitespace and ``0x`` prefixes allowed);
``--base64`` accepts the ``frm_payload`` field of a network server uplink.

Usage:
    weather-decode 000101012019
    weather-decode --base64 AAEBASAZAA==
    echo 000101012019 | weather-decode

Exit status: 0 all frames clean, 1 at least one frame carried decode errors,
2 input that is not valid hex/base64.

CHANGELOG:
- 2026-10-19: Shared JSON logging setup; --formatter writes NaN as null
- 2026-10-14: Add --base64 input for frm_payload values
- 2026-10-12: Replace inverter daemon loop with frame decoder CLI
"""

from __future__ import annotations

import argparse
import base64
import binascii
import json
import logging
import sys
from collections.abc import Iterable, Sequence

from edge.src.decoder import decode
from edge.src.jsonlog import configure_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DECODE_ERRORS = 1
EXIT_BAD_INPUT = 2


# ---------------------------------------------------------------------------
# Input parsing
# ---------------------------------------------------------------------------


def parse_frame(text: str, *, use_base64: bool = False) -> bytes:
    """Turn one textual frame into bytes.

    Raises:
        ValueError: If *text* is not valid hex (or base64).
    """
    text = text.strip()
    if use_base64:
        try:
            return base64.b64decode(text, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"invalid base64: {exc}") from exc

    cleaned = "".join(
        tok[2:] if tok.lower().startswith("0x") else tok
        for tok in text.replace(",", " ").split()
    )
    try:
        return bytes.fromhex(cleaned)
    except ValueError as exc:
        raise ValueError(f"invalid hex: {exc}") from exc


def _iter_inputs(frames: Sequence[str], stdin: Iterable[str]) -> Iterable[str]:
    if frames:
        yield from frames
        return
    for line in stdin:
        if line.strip():
            yield line


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weather-decode",
        description="Decode weather station telemetry frames to JSON.",
    )
    parser.add_argument("frames", nargs="*", help="Frames as hex (default: read stdin)")
    parser.add_argument(
        "--base64",
        action="store_true",
        help="Frames are base64 (frm_payload) instead of hex",
    )
    parser.add_argument(
        "--formatter",
        action="store_true",
        help="Print the network server formatter shape ({data, warnings, errors})",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def run(
    argv: Sequence[str] | None = None,
    *,
    stdin: Iterable[str] | None = None,
    stdout=None,
) -> int:
    """Decode frames and write JSON lines; returns the process exit status."""
    args = build_parser().parse_args(argv)
    configure_logging(args.debug)
    out = stdout if stdout is not None else sys.stdout
    status = EXIT_OK

    for text in _iter_inputs(args.frames, stdin if stdin is not None else sys.stdin):
        try:
            frame = parse_frame(text, use_base64=args.base64)
        except ValueError as exc:
            logger.error("Skipping unparseable frame %r: %s", text.strip()[:64], exc)
            status = EXIT_BAD_INPUT
            continue

        result = decode(frame)
        if args.formatter:
            out.write(json.dumps(result.to_formatter_output()) + "\n")
        else:
            out.write(result.model_dump_json() + "\n")

        if not result.ok and status == EXIT_OK:
            status = EXIT_DECODE_ERRORS

    return status


def main() -> None:
    """Console script entrypoint."""
    sys.exit(run())


if __name__ == "__main__":
    main()
