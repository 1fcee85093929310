from __future__ import annotations

from itertools import cycle

from .constants import OBFUSCATION_KEY


def xor_transform(data: bytes, key: bytes = OBFUSCATION_KEY) -> bytes:
    """XOR ``data`` with a repeating ``key``.

    Applying it twice with the same key returns the input. This only hides
    plaintext patterns from a casual hex dump; it is not encryption.
    """
    if not key:
        raise ValueError("Obfuscation key must not be empty")
    return bytes(b ^ k for b, k in zip(data, cycle(key)))
