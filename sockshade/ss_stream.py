"""Shadowsocks stream ciphers and the connections that use them."""

from __future__ import annotations

import hashlib
import os
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable

from Crypto.Cipher import AES, ARC4, ChaCha20

CHACHA_KEY_SIZE = 32
MAX_PACKET_SIZE = 64 * 1024
_WRITE_CHUNK = 32 * 1024
_AES_KEY_SIZES = (16, 24, 32)


class KeySizeError(ValueError):
    """Raised when a key does not have the length a cipher needs."""

    def __init__(self, size: int) -> None:
        super().__init__(f"key size error: need {size} bytes")
        self.size = size


class ShortPacketError(ValueError):
    """Raised when a packet is too short to be a valid encrypted packet."""

    def __init__(self) -> None:
        super().__init__("short packet")


class _KeyStream:
    """A running keystream; ``update`` transforms the next bytes of the stream."""

    __slots__ = ("_apply",)

    def __init__(self, apply: Callable[[bytes], bytes]) -> None:
        self._apply = apply

    def update(self, data: bytes) -> bytes:
        return self._apply(bytes(data))


class StreamCipher(ABC):
    """Produces keystreams for encryption and decryption from an IV."""

    iv_size: int

    @abstractmethod
    def encrypter(self, iv: bytes) -> _KeyStream:
        """Return a keystream that encrypts data sent after ``iv``."""

    def decrypter(self, iv: bytes) -> _KeyStream:
        """Return a keystream that decrypts data received after ``iv``."""
        return self.encrypter(iv)


def _check_aes_key(key: bytes) -> bytes:
    key = bytes(key)
    if len(key) not in _AES_KEY_SIZES:
        raise ValueError(f"invalid AES key size {len(key)}")
    return key


class _AesCtr(StreamCipher):
    iv_size = AES.block_size

    def __init__(self, key: bytes) -> None:
        self._key = _check_aes_key(key)

    def encrypter(self, iv: bytes) -> _KeyStream:
        ctx = AES.new(self._key, AES.MODE_CTR, nonce=b"", initial_value=bytes(iv))
        return _KeyStream(ctx.encrypt)


class _AesCfb(StreamCipher):
    iv_size = AES.block_size

    def __init__(self, key: bytes) -> None:
        self._key = _check_aes_key(key)

    def _new(self, iv: bytes) -> Any:
        return AES.new(self._key, AES.MODE_CFB, iv=bytes(iv), segment_size=128)

    def encrypter(self, iv: bytes) -> _KeyStream:
        return _KeyStream(self._new(iv).encrypt)

    def decrypter(self, iv: bytes) -> _KeyStream:
        return _KeyStream(self._new(iv).decrypt)


class _ChaCha(StreamCipher):
    def __init__(self, key: bytes, nonce_size: int) -> None:
        key = bytes(key)
        if len(key) != CHACHA_KEY_SIZE:
            raise KeySizeError(CHACHA_KEY_SIZE)
        self._key = key
        self.iv_size = nonce_size

    def encrypter(self, iv: bytes) -> _KeyStream:
        return _KeyStream(ChaCha20.new(key=self._key, nonce=bytes(iv)).encrypt)


class _Rc4Md5(StreamCipher):
    iv_size = 16

    def __init__(self, key: bytes) -> None:
        self._key = bytes(key)

    def encrypter(self, iv: bytes) -> _KeyStream:
        rc4_key = hashlib.md5(self._key + bytes(iv)).digest()
        return _KeyStream(ARC4.new(rc4_key).encrypt)


def aes_ctr(key: bytes) -> StreamCipher:
    """Return an AES cipher in CTR mode; the key is 16, 24 or 32 bytes."""
    return _AesCtr(key)


def aes_cfb(key: bytes) -> StreamCipher:
    """Return an AES cipher in CFB mode; the key is 16, 24 or 32 bytes."""
    return _AesCfb(key)


def chacha20_ietf(key: bytes) -> StreamCipher:
    """Return ChaCha20 with the 12-byte IETF nonce."""
    return _ChaCha(key, 12)


def xchacha20(key: bytes) -> StreamCipher:
    """Return XChaCha20 with a 24-byte nonce."""
    return _ChaCha(key, 24)


def chacha20(key: bytes) -> StreamCipher:
    """Return the original ChaCha20 with an 8-byte nonce."""
    return _ChaCha(key, 8)


def rc4_md5(key: bytes) -> StreamCipher:
    """Return RC4 keyed with MD5(key + iv)."""
    return _Rc4Md5(key)


def pack(plaintext: bytes, cipher: StreamCipher) -> bytes:
    """Encrypt ``plaintext`` under a random IV; return the IV followed by ciphertext."""
    plaintext = bytes(plaintext)
    if cipher.iv_size + len(plaintext) > MAX_PACKET_SIZE:
        raise ValueError("short buffer")
    iv = os.urandom(cipher.iv_size)
    return iv + cipher.encrypter(iv).update(plaintext)


def unpack(packet: bytes, cipher: StreamCipher) -> bytes:
    """Decrypt a packet made by :func:`pack`."""
    packet = bytes(packet)
    if len(packet) < cipher.iv_size:
        raise ShortPacketError()
    iv = packet[: cipher.iv_size]
    return cipher.decrypter(iv).update(packet[cipher.iv_size :])


def _recv_exact(sock: Any, size: int) -> bytes:
    buf = bytearray()
    while len(buf) < size:
        chunk = sock.recv(size - len(buf))
        if not chunk:
            break
        buf += chunk
    return bytes(buf)


class StreamConnection:
    """A stream socket whose traffic is encrypted with a stream cipher.

    Each direction starts with its own IV in clear.
    """

    def __init__(self, sock: Any, cipher: StreamCipher) -> None:
        self.sock = sock
        self.cipher = cipher
        self._reader: _KeyStream | None = None
        self._writer: _KeyStream | None = None

    def __enter__(self) -> StreamConnection:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def read(self, size: int = _WRITE_CHUNK) -> bytes:
        """Return up to ``size`` decrypted bytes; an empty result means end of stream."""
        if self._reader is None:
            iv = _recv_exact(self.sock, self.cipher.iv_size)
            if not iv:
                return b""
            if len(iv) < self.cipher.iv_size:
                raise EOFError("unexpected EOF while reading IV")
            self._reader = self.cipher.decrypter(iv)
        data = self.sock.recv(size)
        if not data:
            return b""
        return self._reader.update(data)

    def write(self, data: bytes) -> int:
        """Encrypt and send ``data``; return the number of plaintext bytes."""
        data = bytes(data)
        if self._writer is None:
            iv = os.urandom(self.cipher.iv_size)
            self.sock.sendall(iv)
            self._writer = self.cipher.encrypter(iv)
        for start in range(0, len(data), _WRITE_CHUNK):
            self.sock.sendall(self._writer.update(data[start : start + _WRITE_CHUNK]))
        return len(data)

    def close(self) -> None:
        """Close the underlying socket."""
        self.sock.close()


class PacketConnection:
    """A datagram socket whose packets each carry their own IV."""

    def __init__(self, sock: Any, cipher: StreamCipher) -> None:
        self.sock = sock
        self.cipher = cipher
        self._lock = threading.Lock()

    def __enter__(self) -> PacketConnection:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def send_to(self, data: bytes, addr: Any) -> int:
        """Encrypt ``data`` and send it to ``addr``; return the plaintext length."""
        with self._lock:
            self.sock.sendto(pack(data, self.cipher), addr)
        return len(data)

    def recv_from(self, size: int = MAX_PACKET_SIZE) -> tuple[bytes, Any]:
        """Receive one packet of at most ``size`` bytes; return plaintext and sender."""
        packet, addr = self.sock.recvfrom(size)
        return unpack(packet, self.cipher), addr

    def close(self) -> None:
        """Close the underlying socket."""
        self.sock.close()