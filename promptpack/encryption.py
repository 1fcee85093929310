from __future__ import annotations

from typing import Callable, Optional

from Cryptodome.Cipher import AES
from Cryptodome.Random import get_random_bytes

from .constants import KEY_SIZE, NONCE_SIZE, SALT_SIZE, TAG_SIZE
from .errors import DecryptionFailed, EncryptionFailed, InvalidPassword
from .kdf import derive_key


RandomSource = Callable[[int], bytes]

ENCRYPTED_PREFIX_SIZE = SALT_SIZE + NONCE_SIZE  # 28


def _draw(rng: RandomSource, n: int) -> bytes:
    out = rng(n)
    if len(out) != n:
        raise EncryptionFailed(f"random source returned {len(out)} bytes, expected {n}")
    return bytes(out)


class EncryptionContext:
    """AES-256-GCM keyed by a PBKDF2-derived key bound to one salt."""

    def __init__(self, key: bytes, salt: bytes):
        if len(key) != KEY_SIZE:
            raise EncryptionFailed(f"key must be {KEY_SIZE} bytes")
        self.key = key
        self.salt = salt

    @classmethod
    def create(cls, password: str, *, rng: Optional[RandomSource] = None) -> "EncryptionContext":
        salt = _draw(rng or get_random_bytes, SALT_SIZE)
        return cls(derive_key(password, salt), salt)

    @classmethod
    def from_salt(cls, password: str, salt: bytes) -> "EncryptionContext":
        return cls(derive_key(password, salt), salt)

    def encrypt(self, plaintext: bytes, *, rng: Optional[RandomSource] = None) -> bytes:
        nonce = _draw(rng or get_random_bytes, NONCE_SIZE)
        try:
            cipher = AES.new(self.key, AES.MODE_GCM, nonce=nonce, mac_len=TAG_SIZE)
            ciphertext, tag = cipher.encrypt_and_digest(plaintext)
        except (ValueError, TypeError) as e:
            raise EncryptionFailed(str(e)) from e
        return self.salt + nonce + ciphertext + tag

    def decrypt(self, blob: bytes) -> bytes:
        nonce = blob[SALT_SIZE:ENCRYPTED_PREFIX_SIZE]
        rest = blob[ENCRYPTED_PREFIX_SIZE:]
        if len(rest) < TAG_SIZE:
            # No room for a tag; cannot authenticate
            raise InvalidPassword()
        ciphertext, tag = rest[:-TAG_SIZE], rest[-TAG_SIZE:]
        try:
            cipher = AES.new(self.key, AES.MODE_GCM, nonce=nonce, mac_len=TAG_SIZE)
        except (ValueError, TypeError) as e:
            raise DecryptionFailed(str(e)) from e
        try:
            return cipher.decrypt_and_verify(ciphertext, tag)
        except ValueError as e:
            # Wrong password and tampered ciphertext look the same to GCM
            raise InvalidPassword() from e


def encrypt_aead(data: bytes, password: str, *, rng: Optional[RandomSource] = None) -> bytes:
    """Encrypt ``data`` under ``password``.

    Returns ``salt(16) || nonce(12) || ciphertext || tag(16)``. Salt and nonce
    are drawn fresh from ``rng`` (the OS CSPRNG by default) on every call.
    """
    ctx = EncryptionContext.create(password, rng=rng)
    return ctx.encrypt(data, rng=rng)


def decrypt_aead(blob: bytes, password: str) -> bytes:
    """Verify and decrypt a blob produced by :func:`encrypt_aead`.

    Raises:
        DecryptionFailed: blob shorter than salt + nonce.
        InvalidPassword: authentication failed (wrong password or tampering).
    """
    if len(blob) < ENCRYPTED_PREFIX_SIZE:
        raise DecryptionFailed("Data too short")
    ctx = EncryptionContext.from_salt(password, bytes(blob[:SALT_SIZE]))
    return ctx.decrypt(bytes(blob))
