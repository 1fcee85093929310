from __future__ import annotations

import os
import sys
import argparse
import getpass as _getpass
from pathlib import Path
from typing import List, Optional

from promptpack.constants import FILE_EXTENSION
from promptpack.container import decode, encode, peek_is_encrypted, read_header, verify
from promptpack.pack import PromptRecord, export_pack, import_pack
from promptpack.errors import (
    PackError,
    InvalidFormat,
    InvalidVersion,
    HashMismatch,
    PasswordRequired,
    InvalidPassword,
    InvalidPackDocument,
)


def _with_extension(path: str) -> str:
    """Append the conventional .pmtpk suffix when ``path`` has none."""
    if Path(path).suffix:
        return path
    return path + FILE_EXTENSION


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as fh:
        return fh.read()


def _write_bytes(path: str, data: bytes) -> None:
    tmp = path + ".tmp"
    try:
        with open(tmp, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    except OSError:
        try:
            os.remove(tmp)
        except FileNotFoundError:
            pass
        raise


def _first_line(text: str) -> str:
    return next((line.strip() for line in text.splitlines() if line.strip()), "")


def _resolve_password(args: argparse.Namespace, *, confirm: bool = False) -> Optional[str]:
    """Pick the password from --password, --password-env or an interactive prompt.

    Args:
        args: Parsed CLI arguments.
        confirm: Ask twice when prompting (used when creating packs).
    """
    if getattr(args, "password", None):
        return args.password
    env_name = getattr(args, "password_env", None)
    if env_name:
        value = os.environ.get(env_name)
        if not value:
            raise ValueError(f"Environment variable {env_name} is not set")
        return value
    if getattr(args, "ask_password", False):
        pw = _getpass.getpass("Password: ")
        if confirm and pw != _getpass.getpass("Confirm password: "):
            raise ValueError("Passwords do not match")
        return pw or None
    return None


def cmd_pack(output: str, input_path: str, *, password: Optional[str] = None, records: bool = False, quiet: bool = False) -> bool:
    """Create a pack from a UTF-8 text file.

    Args:
        output: Destination path; ``.pmtpk`` is appended when it has no suffix.
        input_path: Source text file.
        password: Encrypt with this password when set.
        records: Treat each non-empty input line as a prompt and write a pack document.
        quiet: Suppress the summary line.
    """
    text = Path(input_path).read_text(encoding="utf-8")
    if records:
        prompts = [PromptRecord(text=line) for line in text.splitlines() if line.strip()]
        data = export_pack(prompts, password)
        summary = f"{len(prompts)} prompt(s)"
    else:
        data = encode(text, password)
        summary = f"{len(text.encode('utf-8'))} byte(s) of text"
    target = _with_extension(output)
    _write_bytes(target, data)
    if not quiet:
        kind = "encrypted" if password is not None else "unencrypted"
        print(f"Wrote {target} ({kind}, {summary}, {len(data)} bytes)")
    return True


def cmd_unpack(archive: str, *, password: Optional[str] = None, out: Optional[str] = None) -> bool:
    """Decode a pack and print its text, or write it to ``out``."""
    text = decode(_read_bytes(archive), password)
    if out:
        Path(out).write_text(text, encoding="utf-8")
        print(f"Wrote {out}")
    else:
        sys.stdout.write(text)
        if text and not text.endswith("\n"):
            sys.stdout.write("\n")
    return True


def cmd_list(archive: str, *, password: Optional[str] = None) -> bool:
    doc = import_pack(_read_bytes(archive), password)
    for r in doc.prompts:
        label = r.header or _first_line(r.text)
        print(f"{r.source}\t{label}")
    print(f"{len(doc.prompts)} prompt(s)", file=sys.stderr)
    return True


def cmd_info(archive: str) -> bool:
    """Show container header information. No password is needed."""
    data = _read_bytes(archive)
    header, payload = read_header(data)
    print(f"Pack: {archive}")
    print(f"  Magic: {header.magic.decode('ascii')}")
    print(f"  Version: {header.version}")
    if header.version in (0, 1):
        print(f"  Encrypted: {'yes' if peek_is_encrypted(data) else 'no'}")
    else:
        print("  Encrypted: unknown version", file=sys.stderr)
    print(f"  Digest: {header.digest.hex()}")
    print(f"  Payload: {len(payload)} bytes")
    print(f"  Integrity: {'OK' if verify(data) else 'FAIL'}")
    return True


def cmd_verify(archive: str) -> bool:
    """Check the stored digest against the payload.

    Prints:
        "OK" on success, "FAIL" on mismatch.
    """
    ok = verify(_read_bytes(archive))
    print("OK" if ok else "FAIL")
    return ok


def _add_password_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--password", help="Pack password")
    p.add_argument("--password-env", metavar="NAME", help="Read the password from environment variable NAME")
    p.add_argument("--ask-password", action="store_true", help="Prompt for the password")


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="promptpack",
        description="PromptPack .pmtpk tool",
        epilog="Encrypted packs use AES-256-GCM with a PBKDF2-derived key.",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_pack = sub.add_parser("pack", help="Create a pack from a text file")
    ap_pack.add_argument("output", help="Output .pmtpk path")
    ap_pack.add_argument("input", help="Input UTF-8 text file")
    ap_pack.add_argument("--records", action="store_true", help="One prompt per non-empty line; write a pack document")
    ap_pack.add_argument("--quiet", help="suppress the summary line", action="store_true")
    _add_password_args(ap_pack)

    ap_unpack = sub.add_parser("unpack", help="Decode a pack to text")
    ap_unpack.add_argument("archive", help="Pack path")
    ap_unpack.add_argument("--out", help="Write text to this file instead of stdout")
    _add_password_args(ap_unpack)

    ap_list = sub.add_parser("list", help="List prompts in a pack document")
    ap_list.add_argument("archive", help="Pack path")
    _add_password_args(ap_list)

    ap_info = sub.add_parser("info", help="Show pack header information")
    ap_info.add_argument("archive", help="Pack path")

    ap_verify = sub.add_parser("verify", help="Verify pack integrity (no password needed)")
    ap_verify.add_argument("archive", help="Pack path")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "pack":
            cmd_pack(
                args.output,
                args.input,
                password=_resolve_password(args, confirm=True),
                records=args.records,
                quiet=args.quiet,
            )
        elif args.cmd == "unpack":
            cmd_unpack(args.archive, password=_resolve_password(args), out=args.out)
        elif args.cmd == "list":
            cmd_list(args.archive, password=_resolve_password(args))
        elif args.cmd == "info":
            cmd_info(args.archive)
        elif args.cmd == "verify":
            sys.exit(0 if cmd_verify(args.archive) else 1)
        else:
            raise RuntimeError("Unknown command")
    except PasswordRequired:
        print("Error: Pack is encrypted. Provide --password.", file=sys.stderr)
        sys.exit(2)
    except InvalidPassword:
        print("Error: Wrong password or tampered data.", file=sys.stderr)
        sys.exit(2)
    except HashMismatch:
        print("Error: File is corrupted (hash mismatch).", file=sys.stderr)
        sys.exit(2)
    except InvalidFormat:
        print("Error: Not a PromptPack file (bad magic or too short).", file=sys.stderr)
        sys.exit(2)
    except InvalidVersion as e:
        print(f"Error: Unsupported pack version {e.version}.", file=sys.stderr)
        sys.exit(2)
    except InvalidPackDocument as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except (PackError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
