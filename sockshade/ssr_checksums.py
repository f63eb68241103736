"""Adler-32 and CRC-32 helpers used by the SSR obfuscation protocols."""

from __future__ import annotations

import zlib

_MASK32 = 0xFFFFFFFF


def calc_adler32(data: bytes) -> int:
    """Return the Adler-32 checksum of ``data``."""
    return zlib.adler32(bytes(data)) & _MASK32


def check_adler32(data: bytes, length: int | None = None) -> bool:
    """Check that the first ``length`` bytes end with their own Adler-32.

    The checksum is stored little-endian in the four bytes that end the
    checked region and covers everything before them.
    """
    if length is None:
        length = len(data)
    if length < 4 or length > len(data):
        raise ValueError(f"invalid checked length {length} for {len(data)} bytes")
    expected = int.from_bytes(bytes(data[length - 4 : length]), "little")
    return calc_adler32(data[: length - 4]) == expected


def calc_crc32(data: bytes, length: int | None = None) -> int:
    """Return the CRC-32 of the first ``length`` bytes of ``data``."""
    if length is None:
        length = len(data)
    if length < 0 or length > len(data):
        raise ValueError(f"invalid length {length} for {len(data)} bytes")
    return zlib.crc32(bytes(data[:length])) & _MASK32


def sign_crc32(data: bytes) -> bytes:
    """Return ``data`` with its last four bytes replaced by a CRC signature.

    The signature is the raw CRC register (the inverted CRC-32) of the
    preceding bytes, stored little-endian, so that :func:`check_crc32`
    accepts the result.
    """
    if len(data) < 4:
        raise ValueError("data must hold at least four bytes")
    body = bytes(data[:-4])
    crc = calc_crc32(body) ^ _MASK32
    return body + crc.to_bytes(4, "little")


def check_crc32(data: bytes, length: int | None = None) -> bool:
    """Check a block produced by :func:`sign_crc32`."""
    return calc_crc32(data, length) == _MASK32