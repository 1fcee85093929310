from __future__ import annotations


# Magic and version
MAGIC_BYTES = b"PPK"  # 3 bytes: "PPK"

VERSION_UNENCRYPTED = 0
VERSION_ENCRYPTED = 1

# Header layout: magic[3] | version u8 | sha256[32]
MAGIC_SIZE = len(MAGIC_BYTES)
VERSION_OFFSET = MAGIC_SIZE
DIGEST_OFFSET = VERSION_OFFSET + 1
DIGEST_SIZE = 32
HEADER_SIZE = DIGEST_OFFSET + DIGEST_SIZE  # 36
MIN_FILE_SIZE = HEADER_SIZE + 1  # at least one payload byte
MIN_PEEK_SIZE = MAGIC_SIZE + 1

# Obfuscation (public, fixed; part of the on-disk format)
OBFUSCATION_KEY = b"PromptPack"

# Encryption
SALT_SIZE = 16
NONCE_SIZE = 12
TAG_SIZE = 16
KEY_SIZE = 32
PBKDF2_ITERATIONS = 100_000

# Compression
GZIP_LEVEL = 6
GZIP_WBITS = 31  # zlib wbits selecting the gzip container

FILE_EXTENSION = ".pmtpk"
PACK_DOCUMENT_VERSION = 1
DEFAULT_SOURCE = "manual"
