"""Hashing, key derivation and pseudo-random helpers for SSR protocols."""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass

_MASK64 = 0xFFFFFFFFFFFFFFFF
_MD5_LEN = 16


def _as_bytes(value: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def hmac_md5(key: bytes, data: bytes) -> bytes:
    """Return the 16-byte HMAC-MD5 of ``data``."""
    return hmac.new(bytes(key), bytes(data), hashlib.md5).digest()


def hmac_sha1(key: bytes, data: bytes) -> bytes:
    """Return the 20-byte HMAC-SHA1 of ``data``."""
    return hmac.new(bytes(key), bytes(data), hashlib.sha1).digest()


def md5_sum(data: bytes) -> bytes:
    """Return the MD5 digest of ``data``."""
    return hashlib.md5(bytes(data)).digest()


def sha1_sum(data: bytes) -> bytes:
    """Return the SHA-1 digest of ``data``."""
    return hashlib.sha1(bytes(data)).digest()


def evp_bytes_to_key(password: str | bytes, key_len: int) -> bytes:
    """Derive a key the way OpenSSL's EVP_BytesToKey does with MD5 and no salt."""
    secret = _as_bytes(password)
    blocks = max((key_len - 1) // _MD5_LEN + 1, 1)
    material = md5_sum(secret)
    for _ in range(1, blocks):
        material += md5_sum(material[-_MD5_LEN:] + secret)
    return material[: max(key_len, 0)]


@dataclass
class Shift128Plus:
    """The xorshift128+ generator used by the auth_chain protocols."""

    v0: int = 0
    v1: int = 0

    def init_from_bin(self, data: bytes) -> None:
        """Seed the state from up to 16 bytes, zero padded."""
        fill = bytes(data[:16]).ljust(16, b"\x00")
        self.v0 = int.from_bytes(fill[:8], "little")
        self.v1 = int.from_bytes(fill[8:], "little")

    def init_from_bin_datalen(self, data: bytes, datalen: int) -> None:
        """Seed from ``data`` with its first two bytes set to ``datalen``, then warm up."""
        fill = bytearray(bytes(data[:16]).ljust(16, b"\x00"))
        fill[0:2] = (datalen & 0xFFFF).to_bytes(2, "little")
        self.v0 = int.from_bytes(fill[:8], "little")
        self.v1 = int.from_bytes(fill[8:], "little")
        for _ in range(4):
            self.next()

    def next(self) -> int:
        """Advance the generator and return the next 64-bit value."""
        x, y = self.v0, self.v1
        self.v0 = y
        x ^= (x << 23) & _MASK64
        x ^= y ^ (x >> 17) ^ (y >> 26)
        self.v1 = x
        return (x + y) & _MASK64