"""The tls1.2_ticket_auth obfuscation: a fake TLS 1.2 session around the stream."""

from __future__ import annotations

import hmac as _hmac
import os
import random
import time
from dataclasses import dataclass, field

from .ssr_info import (
    ERR_TLS12_HMAC,
    ERR_TLS12_MAGIC,
    ERR_TLS12_TOO_SHORT,
    OBFS_HMAC_SHA1_LEN,
    SSRError,
)
from .ssr_obfs import Obfs
from .ssr_tools import hmac_sha1

_RECORD_HEADER = b"\x17\x03\x03"
_HANDSHAKE_FINISH = b"\x14\x03\x03\x00\x01\x01\x16\x03\x03\x00\x20"
_CIPHER_SUITES = (
    b"\x00\x1c\xc0\x2b\xc0\x2f\xcc\xa9\xcc\xa8\xcc\x14\xcc\x13\xc0\x0a\xc0\x14"
    b"\xc0\x09\xc0\x13\x00\x9c\x00\x35\x00\x2f\x00\x0a\x01\x00"
)
_RENEGOTIATION_EXT = b"\xff\x01\x00\x01\x00"
_TICKET_EXT_PREFIX = b"\x00\x17\x00\x00\x00\x23"
_TRAILING_EXTS = (
    b"\x00\x0d\x00\x16\x00\x14\x06\x01\x06\x03\x05\x01\x05\x03\x04\x01\x04\x03"
    b"\x03\x01\x03\x03\x02\x01\x02\x03\x00\x05\x00\x05\x01\x00\x00\x00\x00\x00"
    b"\x12\x00\x00\x75\x50\x00\x00\x00\x0b\x00\x02\x01\x00\x00\x0a\x00\x06\x00"
    b"\x04\x00\x17\x00\x18\x00\x15\x00\x66" + b"\x00" * 0x66
)
_MIN_SERVER_HELLO = 11 + 32 + 1 + 32

STATUS_START = 0
STATUS_HELLO_SENT = 1
STATUS_ESTABLISHED = 8
STATUS_RAW = -1


def pack_record(prefix: bytes, payload: bytes) -> bytes:
    """Append ``payload`` to ``prefix`` as a TLS application-data record."""
    payload = bytes(payload)
    return bytes(prefix) + _RECORD_HEADER + (len(payload) & 0xFFFF).to_bytes(2, "big") + payload


def sni_extension(host: str) -> bytes:
    """Return a server_name extension naming ``host``."""
    name = host.encode("utf-8")
    length = len(name)
    return (
        b"\x00\x00"
        + ((length + 5) & 0xFFFF).to_bytes(2, "big")
        + ((length + 3) & 0xFFFF).to_bytes(2, "big")
        + b"\x00"
        + (length & 0xFFFF).to_bytes(2, "big")
        + name
    )


def _pack_chunked(data: bytes) -> bytes:
    out = b""
    start = 0
    while len(data) - start > 2048:
        size = min(random.randrange(4096) + 100, len(data) - start)
        out = pack_record(out, data[start : start + size])
        start += size
    if len(data) > start:
        out = pack_record(out, data[start:])
    return out


@dataclass
class TLSAuthData:
    """Client identity shared by all connections to one server."""

    local_client_id: bytes = field(default_factory=lambda: os.urandom(32))


class TLS12TicketAuth(Obfs):
    """Wrap traffic in a forged TLS 1.2 handshake with session ticket."""

    overhead = 5

    def __init__(self, fast_auth: bool = False) -> None:
        super().__init__()
        self.fast_auth = fast_auth
        self.data: TLSAuthData | None = None
        self.handshake_status = STATUS_START
        self._send_saver = b""
        self._recv_buffer = bytearray()

    def get_data(self) -> TLSAuthData:
        if self.data is None:
            self.data = TLSAuthData()
        return self.data

    def set_data(self, data: object | None) -> None:
        if isinstance(data, TLSAuthData):
            self.data = data

    def _host(self) -> str:
        info = self.server_info
        host = info.host
        if info.param:
            host = random.choice(info.param.split(",")).strip()
        if host and host[-1].isdigit() and not info.param:
            host = ""
        return host

    def _hmac(self, data: bytes) -> bytes:
        info = self.server_info
        key = bytes(info.key[: info.key_len]).ljust(info.key_len, b"\x00")
        key += self.get_data().local_client_id
        return hmac_sha1(key, data)[:OBFS_HMAC_SHA1_LEN]

    def _pack_auth_data(self) -> bytes:
        head = (int(time.time()) & 0xFFFFFFFF).to_bytes(4, "big") + os.urandom(18)
        return head + self._hmac(head)

    def _client_hello(self) -> bytes:
        ticket_len = random.randrange(164) * 2 + 64
        extensions = (
            _RENEGOTIATION_EXT
            + sni_extension(self._host())
            + _TICKET_EXT_PREFIX
            + ticket_len.to_bytes(2, "big")
            + os.urandom(ticket_len)
            + _TRAILING_EXTS
        )
        body = (
            b"\x03\x03"
            + self._pack_auth_data()
            + b"\x20"
            + self.get_data().local_client_id
            + _CIPHER_SUITES
            + (len(extensions) & 0xFFFF).to_bytes(2, "big")
            + extensions
        )
        handshake = b"\x01\x00" + (len(body) & 0xFFFF).to_bytes(2, "big") + body
        return b"\x16\x03\x01" + (len(handshake) & 0xFFFF).to_bytes(2, "big") + handshake

    def encode(self, data: bytes) -> bytes:
        data = bytes(data)
        status = self.handshake_status
        if status == STATUS_ESTABLISHED:
            if len(data) < 1024:
                return pack_record(b"", data)
            return _pack_chunked(data)
        if status == STATUS_HELLO_SENT:
            if data:
                if len(data) < 1024:
                    self._send_saver = pack_record(self._send_saver, data)
                else:
                    self._send_saver += _pack_chunked(data)
                return b""
            finish = _HANDSHAKE_FINISH + os.urandom(22)
            encoded = finish + self._hmac(finish) + self._send_saver
            self._send_saver = b""
            self.handshake_status = STATUS_ESTABLISHED
            return encoded
        if status == STATUS_START:
            encoded = self._client_hello()
            self._send_saver = pack_record(self._send_saver, data)
            self.handshake_status = STATUS_HELLO_SENT
            return encoded
        raise SSRError(f"unexpected handshake status: {status}")

    def decode(self, data: bytes) -> tuple[bytes, bool]:
        data = bytes(data)
        if self.handshake_status == STATUS_RAW:
            return data, False

        if self.handshake_status == STATUS_ESTABLISHED:
            self._recv_buffer += data
            out = bytearray()
            buf = self._recv_buffer
            while len(buf) > 5:
                if bytes(buf[:3]) != _RECORD_HEADER:
                    raise SSRError(ERR_TLS12_MAGIC)
                size = int.from_bytes(buf[3:5], "big")
                if len(buf) - 5 < size:
                    break
                out += buf[5 : 5 + size]
                del buf[: 5 + size]
            return bytes(out), False

        if len(data) < _MIN_SERVER_HELLO:
            raise SSRError(ERR_TLS12_TOO_SHORT)
        digest = self._hmac(data[11 : 11 + 22])
        if not _hmac.compare_digest(data[33 : 33 + OBFS_HMAC_SHA1_LEN], digest):
            raise SSRError(ERR_TLS12_HMAC)
        return b"", True