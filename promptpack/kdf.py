from __future__ import annotations

from Cryptodome.Hash import SHA256
from Cryptodome.Protocol.KDF import PBKDF2

from .constants import KEY_SIZE, PBKDF2_ITERATIONS, SALT_SIZE


def derive_key(password: str, salt: bytes) -> bytes:
    """Derive the 32-byte AES key for ``password`` and a 16-byte ``salt``.

    PBKDF2-HMAC-SHA256 with a fixed iteration count; same inputs always give
    the same key.
    """
    if len(salt) != SALT_SIZE:
        raise ValueError(f"Salt must be {SALT_SIZE} bytes")
    return PBKDF2(
        password.encode("utf-8"),
        salt,
        dkLen=KEY_SIZE,
        count=PBKDF2_ITERATIONS,
        hmac_hash_module=SHA256,
    )
