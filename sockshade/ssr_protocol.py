"""SSR protocol layers: the shared base, origin and verify_sha1 (OTA)."""

from __future__ import annotations

import hmac as _hmac
import threading
from dataclasses import dataclass, field

from .ssr_info import ServerInfo, SSRError
from .ssr_tools import hmac_sha1

ONE_TIME_AUTH_MASK = 0x10
_BLOCK_SIZE = 4096


@dataclass
class AuthData:
    """Client identity shared by all connections that use one server."""

    client_id: bytes = b""
    connection_id: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class Protocol:
    """Base protocol layer; passes data through unchanged."""

    overhead = 0

    def __init__(self) -> None:
        self.server_info = ServerInfo()
        self.shared: object | None = None

    def pre_encrypt(self, data: bytes) -> bytes:
        """Frame plaintext before it is encrypted."""
        return bytes(data)

    def post_decrypt(self, data: bytes) -> tuple[bytes, int]:
        """Unframe decrypted data; return the payload and how many bytes were used."""
        data = bytes(data)
        return data, len(data)

    def get_data(self) -> object | None:
        """Return state shared between connections to one server, if any."""
        return self.shared

    def set_data(self, data: object | None) -> None:
        """Keep the state shared between connections to one server."""
        self.shared = data


class OriginProtocol(Protocol):
    """The plain shadowsocks framing: no extra protocol."""


class VerifySHA1Protocol(Protocol):
    """One-time authentication: HMAC-SHA1 on the header and on every chunk."""

    def __init__(self) -> None:
        super().__init__()
        self.has_sent_header = False
        self.chunk_id = 0

    def _connect_auth(self, head: bytes) -> bytes:
        info = self.server_info
        return head + hmac_sha1(bytes(info.iv) + bytes(info.key), head)

    def _chunk_auth(self, chunk_id: int, chunk: bytes) -> bytes:
        digest = hmac_sha1(bytes(self.server_info.iv) + chunk_id.to_bytes(4, "big"), chunk)
        return (len(chunk) & 0xFFFF).to_bytes(2, "big") + digest + chunk

    def _next_chunk_id(self) -> int:
        chunk_id = self.chunk_id
        self.chunk_id = (chunk_id + 1) & 0xFFFFFFFF
        return chunk_id

    def verify_chunk(self, iv: bytes, chunk_id: int, data: bytes, expected: bytes) -> bool:
        """Return whether ``expected`` is the HMAC of chunk ``chunk_id`` under ``iv``."""
        actual = hmac_sha1(bytes(iv) + (chunk_id & 0xFFFFFFFF).to_bytes(4, "big"), bytes(data))
        return _hmac.compare_digest(bytes(expected), actual)

    def pre_encrypt(self, data: bytes) -> bytes:
        buf = bytearray(data)
        out = bytearray()
        offset = 0
        if not self.has_sent_header:
            head_len = self.server_info.head_len
            if not buf or head_len > len(buf):
                raise SSRError("verify_sha1: data is shorter than the address header")
            buf[0] |= ONE_TIME_AUTH_MASK
            out += self._connect_auth(bytes(buf[:head_len]))
            self.has_sent_header = True
            offset = head_len
        for start in range(offset, len(buf), _BLOCK_SIZE):
            chunk = bytes(buf[start : start + _BLOCK_SIZE])
            out += self._chunk_auth(self._next_chunk_id(), chunk)
        return bytes(out)