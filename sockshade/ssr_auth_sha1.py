"""The auth_sha1_v4 protocol: CRC/Adler-framed chunks with an HMAC-signed header."""

from __future__ import annotations

import os
import random
import time

from .ssr_checksums import calc_adler32, calc_crc32, check_adler32
from .ssr_info import (
    ERR_AUTH_SHA1V4_CHECKSUM,
    ERR_AUTH_SHA1V4_CRC32,
    ERR_AUTH_SHA1V4_DATA_LENGTH,
    OBFS_HMAC_SHA1_LEN,
    SSRError,
    get_head_size,
)
from .ssr_protocol import AuthData, Protocol
from .ssr_tools import hmac_sha1

_SALT = b"auth_sha1_v4"
_BLOCK_SIZE = 4096


def _fixed(value: bytes, size: int) -> bytes:
    return bytes(value[:size]).ljust(size, b"\x00")


def _rand_length(data_length: int) -> int:
    if data_length > 1300:
        return 1
    return 1 + random.randrange(128 if data_length > 400 else 1024)


def _put_rand_length(out: bytearray, pos: int, rand_length: int) -> None:
    if rand_length < 128:
        out[pos] = rand_length
    else:
        out[pos] = 0xFF
        out[pos + 1 : pos + 3] = (rand_length & 0xFFFF).to_bytes(2, "big")


class AuthSHA1v4(Protocol):
    """Client side of auth_sha1_v4."""

    overhead = 7

    def __init__(self) -> None:
        super().__init__()
        self.data: AuthData | None = None
        self.has_sent_header = False

    def get_data(self) -> AuthData:
        if self.data is None:
            self.data = AuthData()
        return self.data

    def set_data(self, data: object | None) -> None:
        if isinstance(data, AuthData):
            self.data = data

    def _next_connection(self) -> tuple[bytes, int]:
        auth = self.get_data()
        with auth.lock:
            auth.connection_id += 1
            if auth.connection_id > 0xFF000000:
                auth.client_id = b""
            if not auth.client_id:
                auth.client_id = os.urandom(8)
                auth.connection_id = int.from_bytes(os.urandom(4), "little") & 0xFFFFFF
            return auth.client_id, auth.connection_id

    def _pack_data(self, data: bytes) -> bytes:
        rand_length = _rand_length(len(data))
        out_length = rand_length + len(data) + 8
        out = bytearray(out_length)
        out[0:2] = (out_length & 0xFFFF).to_bytes(2, "big")
        out[2:4] = (calc_crc32(out, 2) & 0xFFFF).to_bytes(2, "little")
        _put_rand_length(out, 4, rand_length)
        out[rand_length + 4 : rand_length + 4 + len(data)] = data
        out[-4:] = calc_adler32(out[:-4]).to_bytes(4, "little")
        return bytes(out)

    def _pack_auth_data(self, data: bytes) -> bytes:
        rand_length = _rand_length(len(data))
        data_offset = rand_length + 6
        out_length = data_offset + len(data) + 12 + OBFS_HMAC_SHA1_LEN
        client_id, connection_id = self._next_connection()
        info = self.server_info
        key = _fixed(info.key, info.key_len)

        out = bytearray(out_length)
        out[0:2] = (out_length & 0xFFFF).to_bytes(2, "big")
        crc = calc_crc32(bytes(out[0:2]) + _SALT + key)
        out[2:6] = crc.to_bytes(4, "little")
        out[6:data_offset] = os.urandom(rand_length)
        _put_rand_length(out, 6, rand_length)
        out[data_offset : data_offset + 4] = (int(time.time()) & 0xFFFFFFFF).to_bytes(4, "little")
        out[data_offset + 4 : data_offset + 8] = client_id[:4]
        out[data_offset + 8 : data_offset + 12] = connection_id.to_bytes(4, "little")
        out[data_offset + 12 : data_offset + 12 + len(data)] = data

        hmac_key = _fixed(info.iv, info.iv_len) + key
        digest = hmac_sha1(hmac_key, out[:-OBFS_HMAC_SHA1_LEN])
        out[-OBFS_HMAC_SHA1_LEN:] = digest[:OBFS_HMAC_SHA1_LEN]
        return bytes(out)

    def pre_encrypt(self, data: bytes) -> bytes:
        data = bytes(data)
        out = bytearray()
        offset = 0
        if not self.has_sent_header and data:
            head_size = min(get_head_size(data, 30), len(data))
            out += self._pack_auth_data(data[:head_size])
            offset = head_size
            self.has_sent_header = True
        for start in range(offset, len(data), _BLOCK_SIZE):
            out += self._pack_data(data[start : start + _BLOCK_SIZE])
        return bytes(out)

    def post_decrypt(self, data: bytes) -> tuple[bytes, int]:
        data = bytes(data)
        out = bytearray()
        consumed = 0
        while len(data) - consumed > 4:
            chunk = data[consumed:]
            crc = calc_crc32(chunk, 2)
            if int.from_bytes(chunk[2:4], "little") != crc & 0xFFFF:
                raise SSRError(ERR_AUTH_SHA1V4_CRC32)
            length = int.from_bytes(chunk[0:2], "big")
            if length >= 8192 or length < 8:
                raise SSRError(ERR_AUTH_SHA1V4_DATA_LENGTH)
            if length > len(chunk):
                break
            if not check_adler32(chunk, length):
                raise SSRError(ERR_AUTH_SHA1V4_CHECKSUM)
            pos = chunk[4]
            if pos != 0xFF:
                pos += 4
            else:
                pos = int.from_bytes(chunk[5:7], "big") + 4
            out += chunk[pos : length - 4]
            consumed += length
        return bytes(out), consumed