from __future__ import annotations

import hashlib
import hmac


def sha256_32(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def digest_matches(data: bytes, expected: bytes) -> bool:
    """Compare the SHA-256 of ``data`` against a stored digest.

    The digest is unkeyed: it detects bit rot and truncation, not tampering.
    """
    return hmac.compare_digest(sha256_32(data), bytes(expected))
