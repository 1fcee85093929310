from __future__ import annotations

import zlib
from typing import Optional

from .constants import GZIP_LEVEL, GZIP_WBITS
from .errors import CompressionFailed, DecompressionFailed


class Codec:
    """gzip (RFC 1952) framing over DEFLATE via zlib."""

    def __init__(self, level: Optional[int] = None):
        self.level = level if level is not None else GZIP_LEVEL

    def compress(self, data: bytes) -> bytes:
        try:
            c = zlib.compressobj(self.level, zlib.DEFLATED, GZIP_WBITS)
            return c.compress(data) + c.flush()
        except (zlib.error, ValueError) as e:
            raise CompressionFailed(str(e)) from e

    def decompress(self, data: bytes) -> bytes:
        # Only the first gzip member is read; trailing bytes are ignored
        d = zlib.decompressobj(GZIP_WBITS)
        try:
            out = d.decompress(data)
        except zlib.error as e:
            raise DecompressionFailed(str(e)) from e
        if not d.eof:
            raise DecompressionFailed("incomplete or truncated stream")
        return out


def compress(data: bytes) -> bytes:
    return Codec().compress(data)


def decompress(data: bytes) -> bytes:
    return Codec().decompress(data)
