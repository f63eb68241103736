"""Stream ciphers offered by the SSR client, keyed from a password."""

from __future__ import annotations

import copy as _copy
import os
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from Crypto.Cipher import AES, ARC4, CAST, DES, Blowfish, ChaCha20, Salsa20
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .ssr_info import SSRError
from .ssr_tools import evp_bytes_to_key, md5_sum

DEFAULT_METHOD = "rc4-md5"

Keystream = Callable[[bytes], bytes]


class Direction(Enum):
    """Whether a stream is built for decryption or encryption."""

    DECRYPT = 0
    ENCRYPT = 1


def _xor(a: bytes, b: bytes) -> bytes:
    n = len(a)
    return (int.from_bytes(a, "little") ^ int.from_bytes(b, "little")).to_bytes(n, "little")


class _CFBStream:
    """Full-block cipher feedback mode over a block encryption function."""

    def __init__(
        self,
        encrypt_block: Callable[[bytes], bytes],
        block_size: int,
        iv: bytes,
        decrypt: bool,
    ) -> None:
        if len(iv) != block_size:
            raise SSRError(f"IV length must equal block size {block_size}")
        self._encrypt_block = encrypt_block
        self._block_size = block_size
        self._register = bytes(iv)
        self._keystream = b""
        self._feedback = bytearray()
        self._decrypt = decrypt

    def __call__(self, data: bytes) -> bytes:
        data = bytes(data)
        out = bytearray()
        pos = 0
        while pos < len(data):
            if not self._keystream:
                self._keystream = self._encrypt_block(self._register)
                self._feedback = bytearray()
            take = min(len(self._keystream), len(data) - pos)
            chunk = data[pos : pos + take]
            result = _xor(chunk, self._keystream[:take])
            self._feedback += chunk if self._decrypt else result
            self._keystream = self._keystream[take:]
            if len(self._feedback) == self._block_size:
                self._register = bytes(self._feedback)
            out += result
            pos += take
        return bytes(out)


_RC2_PITABLE = bytes.fromhex(
    "d978f9c419ddb5ed28e9fd794aa0d89d"
    "c67e37832b76538e624c6488448bfba2"
    "179a59f587b34f1361456d8d09817d32"
    "bd8f40eb86b77b0bf09521225c6b4e82"
    "54d66593ce60b21c7356c014a78cf1dc"
    "1275ca1f3bbee4d1423dd430a33cb626"
    "6fbf0eda4669075727f21d9bbc944303"
    "f811c7f690ef3ee706c3d52fc8661ed7"
    "08e8eade8052eef784aa72ac354d6a2a"
    "961ad2715a1549744b9fd05e0418a4ec"
    "c2e0416e0f51cbcc2491af50a1f47039"
    "997c3a8523b8b47afc02365b25559731"
    "2d5dfa98e38a92ae05df2910676cbac9"
    "d300e6cfe19ea82c6316013f58e289a9"
    "0d38341bab33ffb0bb480c5fb9b1cd2e"
    "c5f3db47e5a59c770aa62068fe7fc1ad"
)
_RC2_SHIFTS = (1, 2, 3, 5)


class _RC2:
    """RC2 block encryption with an explicit effective key length."""

    block_size = 8

    def __init__(self, key: bytes, effective_bits: int) -> None:
        t = len(key)
        if not 1 <= t <= 128:
            raise SSRError("rc2: invalid key size")
        expanded = bytearray(128)
        expanded[:t] = key
        for i in range(t, 128):
            expanded[i] = _RC2_PITABLE[(expanded[i - 1] + expanded[i - t]) & 0xFF]
        t8 = (effective_bits + 7) // 8
        tm = 255 % (1 << (8 + effective_bits - 8 * t8))
        expanded[128 - t8] = _RC2_PITABLE[expanded[128 - t8] & tm]
        for i in range(127 - t8, -1, -1):
            expanded[i] = _RC2_PITABLE[expanded[i + 1] ^ expanded[i + t8]]
        self._k = [expanded[2 * i] | (expanded[2 * i + 1] << 8) for i in range(64)]

    def encrypt_block(self, block: bytes) -> bytes:
        r = list(struct.unpack("<4H", block))
        k = self._k
        j = 0
        for rounds, mash in ((5, True), (6, True), (5, False)):
            for _ in range(rounds):
                for i in range(4):
                    v = (
                        r[i]
                        + k[j]
                        + (r[i - 1] & r[i - 2])
                        + ((~r[i - 1] & 0xFFFF) & r[i - 3])
                    ) & 0xFFFF
                    j += 1
                    s = _RC2_SHIFTS[i]
                    r[i] = ((v << s) | (v >> (16 - s))) & 0xFFFF
            if mash:
                for i in range(4):
                    r[i] = (r[i] + k[r[i - 1] & 63]) & 0xFFFF
        return struct.pack("<4H", *r)


def _idea_mul(a: int, b: int) -> int:
    a = a or 0x10000
    b = b or 0x10000
    return (a * b % 0x10001) & 0xFFFF


class _IDEA:
    """IDEA block encryption."""

    block_size = 8

    def __init__(self, key: bytes) -> None:
        if len(key) != 16:
            raise SSRError("idea: key must be 16 bytes")
        k = int.from_bytes(key, "big")
        subkeys: list[int] = []
        while len(subkeys) < 52:
            subkeys.extend((k >> (112 - 16 * i)) & 0xFFFF for i in range(8))
            k = ((k << 25) | (k >> 103)) & ((1 << 128) - 1)
        self._sub = subkeys[:52]

    def encrypt_block(self, block: bytes) -> bytes:
        x1, x2, x3, x4 = struct.unpack(">4H", block)
        sub = self._sub
        for rnd in range(8):
            z = sub[6 * rnd : 6 * rnd + 6]
            x1 = _idea_mul(x1, z[0])
            x2 = (x2 + z[1]) & 0xFFFF
            x3 = (x3 + z[2]) & 0xFFFF
            x4 = _idea_mul(x4, z[3])
            t0 = _idea_mul(z[4], x1 ^ x3)
            t1 = _idea_mul(z[5], (t0 + (x2 ^ x4)) & 0xFFFF)
            t0 = (t0 + t1) & 0xFFFF
            x1 ^= t1
            x4 ^= t0
            x2, x3 = x3 ^ t1, x2 ^ t0
        z = sub[48:]
        return struct.pack(
            ">4H",
            _idea_mul(x1, z[0]),
            (x3 + z[1]) & 0xFFFF,
            (x2 + z[2]) & 0xFFFF,
            _idea_mul(x4, z[3]),
        )


def _camellia_block(key: bytes) -> Callable[[bytes], bytes]:
    return Cipher(algorithms.Camellia(key), modes.ECB()).encryptor().update


def _cfb(
    make_block: Callable[[bytes], Callable[[bytes], bytes]], block_size: int
) -> Callable[[bytes, bytes, Direction], Keystream]:
    def factory(key: bytes, iv: bytes, direction: Direction) -> Keystream:
        try:
            encrypt_block = make_block(bytes(key))
        except ValueError as exc:
            raise SSRError(str(exc)) from exc
        return _CFBStream(encrypt_block, block_size, bytes(iv), direction is Direction.DECRYPT)

    return factory


def _aes_ctr(key: bytes, iv: bytes, direction: Direction) -> Keystream:
    # The "ofb" methods run in CTR mode as well, as the server side does.
    return AES.new(bytes(key), AES.MODE_CTR, nonce=b"", initial_value=bytes(iv)).encrypt


def _rc4_md5(key: bytes, iv: bytes, direction: Direction) -> Keystream:
    return ARC4.new(md5_sum(bytes(key) + bytes(iv))).encrypt


def _chacha20(key: bytes, iv: bytes, direction: Direction) -> Keystream:
    return ChaCha20.new(key=bytes(key), nonce=bytes(iv)).encrypt


def _salsa20(key: bytes, iv: bytes, direction: Direction) -> Keystream:
    return Salsa20.new(key=bytes(key[:32]), nonce=bytes(iv[:8])).encrypt


def _rc4(key: bytes, iv: bytes, direction: Direction) -> Keystream:
    return ARC4.new(bytes(key)).encrypt


def _none(key: bytes, iv: bytes, direction: Direction) -> Keystream:
    def passthrough(data: bytes) -> bytes:
        return bytes(data)

    return passthrough


def _rc2_block(key: bytes) -> Callable[[bytes], bytes]:
    return _RC2(key, 16).encrypt_block


@dataclass(frozen=True)
class _CipherInfo:
    key_len: int
    iv_len: int
    factory: Callable[[bytes, bytes, Direction], Keystream]


_aes_cfb = _cfb(lambda k: AES.new(k, AES.MODE_ECB).encrypt, 16)
_camellia_cfb = _cfb(_camellia_block, 16)

_METHODS: dict[str, _CipherInfo] = {
    "aes-128-cfb": _CipherInfo(16, 16, _aes_cfb),
    "aes-192-cfb": _CipherInfo(24, 16, _aes_cfb),
    "aes-256-cfb": _CipherInfo(32, 16, _aes_cfb),
    "aes-128-ctr": _CipherInfo(16, 16, _aes_ctr),
    "aes-192-ctr": _CipherInfo(24, 16, _aes_ctr),
    "aes-256-ctr": _CipherInfo(32, 16, _aes_ctr),
    "aes-128-ofb": _CipherInfo(16, 16, _aes_ctr),
    "aes-192-ofb": _CipherInfo(24, 16, _aes_ctr),
    "aes-256-ofb": _CipherInfo(32, 16, _aes_ctr),
    "des-cfb": _CipherInfo(8, 8, _cfb(lambda k: DES.new(k, DES.MODE_ECB).encrypt, 8)),
    "bf-cfb": _CipherInfo(16, 8, _cfb(lambda k: Blowfish.new(k, Blowfish.MODE_ECB).encrypt, 8)),
    "cast5-cfb": _CipherInfo(16, 8, _cfb(lambda k: CAST.new(k, CAST.MODE_ECB).encrypt, 8)),
    "rc4-md5": _CipherInfo(16, 16, _rc4_md5),
    "rc4-md5-6": _CipherInfo(16, 6, _rc4_md5),
    "chacha20": _CipherInfo(32, 8, _chacha20),
    "chacha20-ietf": _CipherInfo(32, 12, _chacha20),
    "salsa20": _CipherInfo(32, 8, _salsa20),
    "camellia-128-cfb": _CipherInfo(16, 16, _camellia_cfb),
    "camellia-192-cfb": _CipherInfo(24, 16, _camellia_cfb),
    "camellia-256-cfb": _CipherInfo(32, 16, _camellia_cfb),
    "idea-cfb": _CipherInfo(16, 8, _cfb(lambda k: _IDEA(k).encrypt_block, 8)),
    "rc2-cfb": _CipherInfo(16, 8, _cfb(_rc2_block, 8)),
    # SEED is served by RC2, matching the peer implementation.
    "seed-cfb": _CipherInfo(16, 8, _cfb(_rc2_block, 8)),
    "rc4": _CipherInfo(16, 0, _rc4),
    "none": _CipherInfo(16, 0, _none),
}


def _lookup(method: str) -> _CipherInfo:
    try:
        return _METHODS[method or DEFAULT_METHOD]
    except KeyError:
        raise SSRError("Unsupported encryption method: " + method) from None


def check_cipher_method(method: str) -> None:
    """Raise :class:`SSRError` unless ``method`` names a supported cipher."""
    _lookup(method)


def new_stream(method: str, key: bytes, iv: bytes | None, direction: Direction) -> Keystream:
    """Build a keystream function for ``method`` keyed with ``key`` and ``iv``."""
    info = _lookup(method)
    return info.factory(bytes(key), bytes(iv or b""), direction)


class StreamCipher:
    """A pair of encrypting and decrypting streams derived from one password."""

    def __init__(self, method: str, password: str | bytes) -> None:
        if not password:
            raise SSRError("empty key")
        self.method = method or DEFAULT_METHOD
        self._info = _lookup(self.method)
        self.key: bytes = evp_bytes_to_key(password, self._info.key_len)
        self.iv: bytes | None = None
        self._enc: Keystream | None = None
        self._dec: Keystream | None = None

    @property
    def encrypt_inited(self) -> bool:
        return self._enc is not None

    @property
    def decrypt_inited(self) -> bool:
        return self._dec is not None

    @property
    def iv_len(self) -> int:
        return self._info.iv_len

    @property
    def key_len(self) -> int:
        return self._info.key_len

    def init_encrypt(self) -> bytes:
        """Start the encrypting stream, choosing an IV if none is set; return it."""
        if self.iv is None:
            self.iv = os.urandom(self._info.iv_len)
        self._enc = new_stream(self.method, self.key, self.iv, Direction.ENCRYPT)
        return self.iv

    def init_decrypt(self, iv: bytes | None) -> None:
        """Start the decrypting stream with the peer's IV."""
        self._dec = new_stream(self.method, self.key, iv, Direction.DECRYPT)

    def encrypt(self, data: bytes) -> bytes:
        if self._enc is None:
            raise SSRError("encryption stream is not initialised")
        return self._enc(data)

    def decrypt(self, data: bytes) -> bytes:
        if self._dec is None:
            raise SSRError("decryption stream is not initialised")
        return self._dec(data)

    def copy(self) -> StreamCipher:
        """Return a cipher with the same key and IV but fresh streams."""
        clone = _copy.copy(self)
        clone._enc = None
        clone._dec = None
        return clone