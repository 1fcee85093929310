from __future__ import annotations

import argparse
import os
import random
import sys
from typing import Optional

from promptpack.container import read_header
from promptpack.constants import HEADER_SIZE
from promptpack.errors import PackError


def _flip_byte(path: str, offset: int, xor_val: int = 0xFF) -> None:
    if offset < 0:
        raise ValueError("Offset must be non-negative")
    if xor_val & 0xFF == 0:
        raise ValueError("--xor must change at least one bit")
    with open(path, "r+b") as f:
        f.seek(offset)
        b = f.read(1)
        if not b:
            raise ValueError("Offset beyond end of file")
        f.seek(offset)
        f.write(bytes([b[0] ^ (xor_val & 0xFF)]))
        f.flush()
        os.fsync(f.fileno())


def _payload_len(path: str) -> int:
    with open(path, "rb") as f:
        _, payload = read_header(f.read())
    return len(payload)


def cmd_by_offset(args: argparse.Namespace) -> None:
    _flip_byte(args.archive, args.offset, xor_val=args.xor)
    print(f"Flipped 1 byte at offset {args.offset}")


def cmd_payload(args: argparse.Namespace) -> None:
    n = _payload_len(args.archive)
    if args.within < 0 or args.within >= n:
        raise ValueError(f"--within must be within payload length (0..{n-1})")
    off = HEADER_SIZE + args.within
    _flip_byte(args.archive, off, xor_val=args.xor)
    print(f"Flipped 1 byte in payload at archive offset {off}")


def cmd_random(args: argparse.Namespace) -> None:
    rng = random.Random(args.seed)
    n = _payload_len(args.archive)
    if args.count < 1:
        raise ValueError("--count must be at least 1")
    # Distinct offsets; flipping the same byte twice would undo the damage
    flips = 0
    for pos in rng.sample(range(n), min(args.count, n)):
        _flip_byte(args.archive, HEADER_SIZE + pos, xor_val=args.xor)
        flips += 1
    print(f"Flipped {flips} byte(s) at random payload offsets")


def main(argv: Optional[list[str]] = None) -> None:
    ap = argparse.ArgumentParser(prog="promptpack.corrupt", description="Corrupt .pmtpk files for testing")
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_off = sub.add_parser("offset", help="Flip the byte at an absolute file offset")
    ap_off.add_argument("archive")
    ap_off.add_argument("offset", type=int)
    ap_off.add_argument("--xor", type=lambda s: int(s, 0), default=0xFF, help="XOR mask (default 0xFF)")
    ap_off.set_defaults(func=cmd_by_offset)

    ap_pl = sub.add_parser("payload", help="Flip a byte relative to the payload start")
    ap_pl.add_argument("archive")
    ap_pl.add_argument("--within", type=int, default=0, help="Byte offset within payload (default 0)")
    ap_pl.add_argument("--xor", type=lambda s: int(s, 0), default=0x01, help="XOR mask (default 0x01)")
    ap_pl.set_defaults(func=cmd_payload)

    ap_rand = sub.add_parser("random", help="Flip random payload bytes")
    ap_rand.add_argument("archive")
    ap_rand.add_argument("--count", type=int, default=1)
    ap_rand.add_argument("--seed", type=int, default=None)
    ap_rand.add_argument("--xor", type=lambda s: int(s, 0), default=0xFF, help="XOR mask (default 0xFF)")
    ap_rand.set_defaults(func=cmd_random)

    args = ap.parse_args(argv)
    try:
        args.func(args)
    except (PackError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
