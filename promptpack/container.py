"""Encode and decode ``.pmtpk`` containers.

Layout (fixed-size header, no length fields)::

    magic[3] "PPK" | version u8 | sha256(payload)[32] | payload...

``payload`` is the XOR-obfuscated body. For version 0 the body is the gzip
stream of the UTF-8 text; for version 1 it is ``salt | nonce | ciphertext | tag``
from AES-256-GCM over that gzip stream.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Optional, Tuple

from .codec import Codec
from .constants import (
    HEADER_SIZE,
    MAGIC_BYTES,
    MAGIC_SIZE,
    MIN_FILE_SIZE,
    MIN_PEEK_SIZE,
    VERSION_ENCRYPTED,
    VERSION_OFFSET,
    VERSION_UNENCRYPTED,
)
from .encryption import RandomSource, decrypt_aead, encrypt_aead
from .errors import (
    DecompressionFailed,
    HashMismatch,
    InvalidFormat,
    InvalidVersion,
    PasswordRequired,
)
from .hashutil import digest_matches, sha256_32
from .obfuscate import xor_transform


_HEADER_STRUCT = struct.Struct(">3sB32s")


@dataclass(frozen=True)
class PackHeader:
    magic: bytes
    version: int
    digest: bytes

    @property
    def encrypted(self) -> bool:
        return self.version == VERSION_ENCRYPTED

    def pack(self) -> bytes:
        return _HEADER_STRUCT.pack(self.magic, self.version, self.digest)


def _check_magic(data: bytes, min_size: int) -> None:
    if len(data) < min_size:
        raise InvalidFormat()
    if bytes(data[:MAGIC_SIZE]) != MAGIC_BYTES:
        raise InvalidFormat()


def read_header(data: bytes) -> Tuple[PackHeader, bytes]:
    """Split a container into its header and payload without checking the digest."""
    _check_magic(data, MIN_FILE_SIZE)
    magic, version, digest = _HEADER_STRUCT.unpack_from(data, 0)
    return PackHeader(magic=magic, version=version, digest=digest), bytes(data[HEADER_SIZE:])


def encode(plaintext: str, password: Optional[str] = None, *, rng: Optional[RandomSource] = None) -> bytes:
    """Wrap UTF-8 text into a container, encrypting when ``password`` is given."""
    if not isinstance(plaintext, str):
        raise TypeError("plaintext must be str")
    compressed = Codec().compress(plaintext.encode("utf-8"))
    if password is not None:
        body = encrypt_aead(compressed, password, rng=rng)
        version = VERSION_ENCRYPTED
    else:
        body = compressed
        version = VERSION_UNENCRYPTED
    payload = xor_transform(body)
    header = PackHeader(magic=MAGIC_BYTES, version=version, digest=sha256_32(payload))
    return header.pack() + payload


def decode(data: bytes, password: Optional[str] = None) -> str:
    """Validate and unwrap a container back into its original text.

    Checks run in order: length and magic, digest, version/password, then
    decryption and decompression. Corruption is reported as ``HashMismatch``
    before any password is needed.
    """
    header, payload = read_header(data)
    if not digest_matches(payload, header.digest):
        raise HashMismatch()
    body = xor_transform(payload)
    if header.version == VERSION_UNENCRYPTED:
        compressed = body
    elif header.version == VERSION_ENCRYPTED:
        if password is None:
            raise PasswordRequired()
        compressed = decrypt_aead(body, password)
    else:
        raise InvalidVersion(header.version)
    raw = Codec().decompress(compressed)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecompressionFailed(str(e)) from e


def peek_is_encrypted(data: bytes) -> bool:
    """Return whether a container needs a password, looking only at the first 4 bytes."""
    _check_magic(data, MIN_PEEK_SIZE)
    return data[VERSION_OFFSET] == VERSION_ENCRYPTED


def verify(data: bytes) -> bool:
    header, payload = read_header(data)
    return digest_matches(payload, header.digest)
