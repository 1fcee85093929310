"""
PromptPack — portable, optionally password-protected containers for prompt collections.

Features:

- Self-describing ``.pmtpk`` container: "PPK" magic, version byte, SHA-256 of the payload.
- gzip compression of the UTF-8 text before anything else.
- Optional AES-256-GCM encryption with a PBKDF2-HMAC-SHA256 key (PyCryptodomex).
- Fixed XOR obfuscation over the payload so unencrypted packs are not readable in a hex dump.
  This is a format detail, not a security control.
- Caller-side JSON pack documents (prompts with header/source/createdAt) and a CLI.

The digest is unkeyed: it detects corruption, not tampering. Only encrypted packs are
authenticated, by the GCM tag.
"""

from .container import PackHeader, decode, encode, peek_is_encrypted, read_header, verify
from .errors import (
    PackError,
    InvalidFormat,
    InvalidVersion,
    HashMismatch,
    PasswordRequired,
    InvalidPassword,
    EncryptionFailed,
    DecryptionFailed,
    CompressionFailed,
    DecompressionFailed,
    InvalidPackDocument,
)
from .pack import PackDocument, PromptRecord, dumps_pack, export_pack, import_pack, loads_pack

__version__ = "0.1"

__all__ = [
    "encode",
    "decode",
    "peek_is_encrypted",
    "read_header",
    "verify",
    "PackHeader",
    "PackDocument",
    "PromptRecord",
    "dumps_pack",
    "loads_pack",
    "export_pack",
    "import_pack",
    "PackError",
    "InvalidFormat",
    "InvalidVersion",
    "HashMismatch",
    "PasswordRequired",
    "InvalidPassword",
    "EncryptionFailed",
    "DecryptionFailed",
    "CompressionFailed",
    "DecompressionFailed",
    "InvalidPackDocument",
]
