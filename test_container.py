from __future__ import annotations

import hashlib
import itertools
import unittest
import zlib
from concurrent.futures import ThreadPoolExecutor

from promptpack import container
from promptpack.container import decode, encode, peek_is_encrypted, read_header, verify
from promptpack.constants import HEADER_SIZE, MAGIC_BYTES, OBFUSCATION_KEY
from promptpack.errors import (
    DecompressionFailed,
    DecryptionFailed,
    HashMismatch,
    InvalidFormat,
    InvalidPassword,
    InvalidVersion,
    PasswordRequired,
)
from promptpack.obfuscate import xor_transform


def _counter_rng(seed: int = 0):
    counter = itertools.count(seed)

    def rng(n: int) -> bytes:
        out = b""
        while len(out) < n:
            out += hashlib.sha256(next(counter).to_bytes(8, "big")).digest()
        return out[:n]

    return rng


def _forge(version: int, body: bytes, *, magic: bytes = MAGIC_BYTES) -> bytes:
    payload = xor_transform(body)
    return magic + bytes([version]) + hashlib.sha256(payload).digest() + payload


def _gzip(data: bytes) -> bytes:
    c = zlib.compressobj(6, zlib.DEFLATED, 31)
    return c.compress(data) + c.flush()


SAMPLES = [
    "",
    "hello world",
    "héllo wörld — 世界 🎉",
    '{"version":1,"prompts":[{"text":"Summarize this"}]}',
    "line\n" * 2000,
]


class RoundTripTests(unittest.TestCase):
    def test_roundtrip_without_password(self):
        for s in SAMPLES:
            with self.subTest(s=s[:20]):
                self.assertEqual(decode(encode(s)), s)

    def test_roundtrip_with_password(self):
        for s, pw in [("", "pw"), ("hello world", "correct horse"), ("世界 🎉", "pässwörd🔑")]:
            with self.subTest(s=s, pw=pw):
                self.assertEqual(decode(encode(s, pw), pw), s)

    def test_hello_world_layout(self):
        data = encode("hello world")
        self.assertEqual(data[:3], MAGIC_BYTES)
        self.assertEqual(data[3], 0)
        payload = data[HEADER_SIZE:]
        self.assertEqual(data[4:36], hashlib.sha256(payload).digest())
        body = bytes(b ^ OBFUSCATION_KEY[i % len(OBFUSCATION_KEY)] for i, b in enumerate(payload))
        self.assertEqual(body[:2], b"\x1f\x8b")
        self.assertEqual(zlib.decompress(body, 31), b"hello world")
        self.assertEqual(decode(data, None), "hello world")

    def test_encrypted_layout(self):
        data = encode("secret", "pw")
        self.assertEqual(data[:4], MAGIC_BYTES + b"\x01")
        body = xor_transform(data[HEADER_SIZE:])
        # salt + nonce + gzip stream + tag
        self.assertEqual(len(body), 16 + 12 + len(_gzip(b"secret")) + 16)

    def test_accepts_memoryview_and_bytearray(self):
        data = encode("hello world")
        self.assertEqual(decode(bytearray(data)), "hello world")
        self.assertEqual(decode(memoryview(data)), "hello world")

    def test_encode_rejects_bytes(self):
        with self.assertRaises(TypeError):
            encode(b"hello")  # type: ignore[arg-type]

    def test_deterministic_rng_reproduces_output(self):
        a = encode("same", "pw", rng=_counter_rng(7))
        b = encode("same", "pw", rng=_counter_rng(7))
        self.assertEqual(a, b)
        self.assertEqual(decode(a, "pw"), "same")


class PasswordTests(unittest.TestCase):
    def test_wrong_password(self):
        data = encode("hello world", "correct")
        with self.assertRaises(InvalidPassword):
            decode(data, "wrong")

    def test_missing_password(self):
        data = encode("hello world", "x")
        with self.assertRaises(PasswordRequired):
            decode(data, None)

    def test_password_ignored_for_unencrypted(self):
        self.assertEqual(decode(encode("plain"), "unused"), "plain")

    def test_tampered_ciphertext_with_fixed_digest(self):
        data = encode("hello world", "pw")
        body = bytearray(xor_transform(data[HEADER_SIZE:]))
        body[30] ^= 0x01
        with self.assertRaises(InvalidPassword):
            decode(_forge(1, bytes(body)), "pw")

    def test_encrypted_body_too_short(self):
        with self.assertRaises(DecryptionFailed):
            decode(_forge(1, b"\x00" * 27), "pw")

    def test_encrypted_body_without_tag(self):
        with self.assertRaises(InvalidPassword):
            decode(_forge(1, b"\x00" * 30), "pw")

    def test_salt_and_nonce_are_fresh(self):
        seen = set()
        for _ in range(12):
            body = xor_transform(encode("same text", "same pw")[HEADER_SIZE:])
            seen.add(body[:28])
        self.assertEqual(len(seen), 12)


class CorruptionTests(unittest.TestCase):
    def test_single_bit_flip_in_payload(self):
        data = encode("hello world")
        for pos in range(HEADER_SIZE, len(data)):
            for bit in range(8):
                corrupted = bytearray(data)
                corrupted[pos] ^= 1 << bit
                with self.assertRaises(HashMismatch):
                    decode(bytes(corrupted))

    def test_corruption_detected_before_password(self):
        data = bytearray(encode("hello world", "pw"))
        data[-1] ^= 0x80
        with self.assertRaises(HashMismatch):
            decode(bytes(data), None)

    def test_flipped_digest_byte(self):
        data = bytearray(encode("hello world"))
        data[10] ^= 0x01
        with self.assertRaises(HashMismatch):
            decode(bytes(data))

    def test_truncated_prefixes(self):
        data = encode("hello world")
        for n in range(37):
            with self.assertRaises(InvalidFormat):
                decode(data[:n])

    def test_header_only_is_invalid(self):
        data = encode("hello world")
        with self.assertRaises(InvalidFormat):
            decode(data[:HEADER_SIZE])

    def test_truncated_payload_hash_mismatch(self):
        data = encode("hello world")
        with self.assertRaises(HashMismatch):
            decode(data[:-1])

    def test_bad_magic(self):
        data = bytearray(encode("hello world"))
        data[0:3] = b"XYZ"
        with self.assertRaises(InvalidFormat):
            decode(bytes(data))

    def test_unknown_version(self):
        data = _forge(2, b"arbitrary payload")
        with self.assertRaises(InvalidVersion) as cm:
            decode(data)
        self.assertEqual(cm.exception.version, 2)
        self.assertIn("2", str(cm.exception))

    def test_unknown_version_reported_without_password(self):
        with self.assertRaises(InvalidVersion):
            decode(_forge(255, b"x"), "pw")

    def test_garbage_body_fails_decompression(self):
        with self.assertRaises(DecompressionFailed):
            decode(_forge(0, b"not a gzip stream"))

    def test_truncated_gzip_fails_decompression(self):
        with self.assertRaises(DecompressionFailed):
            decode(_forge(0, _gzip(b"hello world" * 10)[:-9]))

    def test_invalid_utf8_fails_decompression(self):
        with self.assertRaises(DecompressionFailed):
            decode(_forge(0, _gzip(b"\xff\xfe\xfa")))


class HeaderTests(unittest.TestCase):
    def test_peek(self):
        self.assertFalse(peek_is_encrypted(encode("a")))
        self.assertTrue(peek_is_encrypted(encode("a", "pw")))
        self.assertTrue(peek_is_encrypted(b"PPK\x01"))
        self.assertFalse(peek_is_encrypted(b"PPK\x07"))

    def test_peek_rejects_short_or_bad_magic(self):
        for data in (b"", b"PPK", b"XYZ\x01", b"PP\x00\x01"):
            with self.subTest(data=data):
                with self.assertRaises(InvalidFormat):
                    peek_is_encrypted(data)

    def test_peek_ignores_digest(self):
        data = bytearray(encode("hello", "pw"))
        data[5] ^= 0xFF
        self.assertTrue(peek_is_encrypted(bytes(data)))

    def test_read_header(self):
        data = encode("hello world", "pw")
        header, payload = read_header(data)
        self.assertEqual(header.magic, b"PPK")
        self.assertEqual(header.version, 1)
        self.assertTrue(header.encrypted)
        self.assertEqual(header.digest, hashlib.sha256(payload).digest())
        self.assertEqual(header.pack() + payload, data)

    def test_verify(self):
        data = encode("hello world")
        self.assertTrue(verify(data))
        corrupted = bytearray(data)
        corrupted[-1] ^= 0x01
        self.assertFalse(verify(bytes(corrupted)))
        with self.assertRaises(InvalidFormat):
            verify(data[:20])


class ConcurrencyTests(unittest.TestCase):
    def test_parallel_roundtrips_with_default_rng(self):
        def job(i: int):
            text = f"prompt {i} — 世界"
            pw = f"pw{i}" if i % 2 else None
            data = encode(text, pw)
            return i, text, pw, data, decode(data, pw)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(job, range(32)))

        prefixes = set()
        for i, text, pw, data, decoded in results:
            self.assertEqual(decoded, text)
            self.assertEqual(peek_is_encrypted(data), pw is not None)
            if pw is not None:
                prefixes.add(xor_transform(data[HEADER_SIZE:])[:28])
        self.assertEqual(len(prefixes), 16)


class ModuleTests(unittest.TestCase):
    def test_container_docstring(self):
        self.assertIsNotNone(container.__doc__)
        self.assertIn(".pmtpk", container.__doc__)


if __name__ == "__main__":
    unittest.main()
