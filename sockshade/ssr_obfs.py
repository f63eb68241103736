"""Obfuscation layers for SSR: plain, http_simple, http_post and random_head."""

from __future__ import annotations

import os
import random
import string

from .ssr_checksums import sign_crc32
from .ssr_info import ServerInfo

REQUEST_PATHS = (
    ("", ""),
    ("login.php?redir=", ""),
    ("register.php?code=", ""),
    ("?keyword=", ""),
    ("search?src=typd&q=", "&lang=en"),
    ("s?ie=utf-8&f=8&rsv_bp=1&rsv_idx=1&ch=&bar=&wd=", "&rn="),
    ("post.php?id=", "&goto=view.php"),
)

REQUEST_USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 6.3; WOW64; rv:40.0) Gecko/20100101 Firefox/40.0",
    "Mozilla/5.0 (Windows NT 6.3; WOW64; rv:40.0) Gecko/20100101 Firefox/44.0",
    "Mozilla/5.0 (Windows NT 6.1) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/41.0.2228.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/535.11 (KHTML, like Gecko) Ubuntu/11.10 Chromium/27.0.1453.93 Chrome/27.0.1453.93 Safari/537.36",
    "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:35.0) Gecko/20100101 Firefox/35.0",
    "Mozilla/5.0 (compatible; WOW64; MSIE 10.0; Windows NT 6.2)",
    "Mozilla/5.0 (Windows; U; Windows NT 6.1; en-US) AppleWebKit/533.20.25 (KHTML, like Gecko) Version/5.0.4 Safari/533.20.27",
    "Mozilla/4.0 (compatible; MSIE 7.0; Windows NT 6.3; Trident/7.0; .NET4.0E; .NET4.0C)",
    "Mozilla/5.0 (Windows NT 6.3; Trident/7.0; rv:11.0) like Gecko",
    "Mozilla/5.0 (Linux; Android 4.4; Nexus 5 Build/BuildID) AppleWebKit/537.36 (KHTML, like Gecko) Version/4.0 Chrome/30.0.0.0 Mobile Safari/537.36",
    "Mozilla/5.0 (iPad; CPU OS 5_0 like Mac OS X) AppleWebKit/534.46 (KHTML, like Gecko) Version/5.1 Mobile/9A334 Safari/7534.48.3",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 5_0 like Mac OS X) AppleWebKit/534.46 (KHTML, like Gecko) Version/5.1 Mobile/9A334 Safari/7534.48.3",
)

_BOUNDARY_CHARS = string.ascii_uppercase + string.ascii_lowercase + string.digits


class Obfs:
    """Base obfuscation layer; passes data through unchanged."""

    overhead = 0

    def __init__(self) -> None:
        self.server_info = ServerInfo()

    def encode(self, data: bytes) -> bytes:
        """Return ``data`` wrapped for the wire."""
        return bytes(data)

    def decode(self, data: bytes) -> tuple[bytes, bool]:
        """Unwrap ``data``; the flag asks the caller to send an empty write back."""
        return bytes(data), False

    def get_data(self) -> object | None:
        """Return state shared between connections to one server, if any."""
        return None

    def set_data(self, data: object | None) -> None:
        """Adopt shared state; layers without any ignore it."""


class PlainObfs(Obfs):
    """No obfuscation at all."""


class HttpSimpleObfs(Obfs):
    """Disguise the first packet as an HTTP GET (or POST) request."""

    def __init__(self, method_get: bool = True) -> None:
        super().__init__()
        self.method_get = method_get
        self.raw_trans_sent = False
        self.raw_trans_received = False
        self.user_agent_index = random.randrange(len(REQUEST_USER_AGENTS))

    @staticmethod
    def _boundary() -> str:
        return "".join(random.choice(_BOUNDARY_CHARS) for _ in range(32))

    @staticmethod
    def _url_encode(data: bytes) -> str:
        return "".join(f"%{byte:02x}" for byte in data)

    def _host_and_custom_head(self) -> tuple[str, str]:
        info = self.server_info
        host = info.host
        custom_head = ""
        if info.param:
            heads = info.param.split("#")[:2]
            param = info.param
            if len(heads) > 1:
                custom_head = heads[1]
                param = heads[0]
            host = random.choice(param.split(",")).strip()
        return host, custom_head

    def encode(self, data: bytes) -> bytes:
        data = bytes(data)
        if self.raw_trans_sent:
            return data

        head_size = self.server_info.iv_len + self.server_info.head_len
        if len(data) - head_size > 64:
            head_data = data[: head_size + random.randrange(64)]
        else:
            head_data = data

        prefix, suffix = random.choice(REQUEST_PATHS)
        host, custom_head = self._host_and_custom_head()
        method = "GET /" if self.method_get else "POST /"
        request = (
            f"{method}{prefix}{self._url_encode(head_data)}{suffix} HTTP/1.1\r\n"
            f"Host: {host}:{self.server_info.port}\r\n"
        )
        if custom_head:
            request += custom_head.replace("\\n", "\r\n") + "\r\n\r\n"
        else:
            content_type = ""
            if not self.method_get:
                content_type = (
                    "Content-Type: multipart/form-data; boundary=" + self._boundary() + "\r\n"
                )
            request += (
                "User-Agent: " + REQUEST_USER_AGENTS[self.user_agent_index] + "\r\n"
                "Accept: text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8\r\n"
                "Accept-Language: en-US,en;q=0.8\r\n"
                "Accept-Encoding: gzip, deflate\r\n"
                + content_type
                + "DNT: 1\r\n"
                "Connection: keep-alive\r\n"
                "\r\n"
            )

        self.raw_trans_sent = True
        return request.encode("utf-8") + data[len(head_data) :]

    def decode(self, data: bytes) -> tuple[bytes, bool]:
        data = bytes(data)
        if self.raw_trans_received:
            return data, False
        pos = data.find(b"\r\n\r\n")
        if pos > 0:
            self.raw_trans_received = True
            return data[pos + 4 :], False
        return b"", False


class RandomHeadObfs(Obfs):
    """Send a random CRC-signed block first, then the buffered payload."""

    def __init__(self) -> None:
        super().__init__()
        self.raw_trans_sent = False
        self.raw_trans_received = False
        self.has_sent_header = False
        self._buffer = b""

    def encode(self, data: bytes) -> bytes:
        data = bytes(data)
        if self.raw_trans_sent:
            return data

        encoded = b""
        if self.has_sent_header:
            if data:
                self._buffer += data
            else:
                encoded = self._buffer
                self._buffer = b""
                self.raw_trans_sent = True
        else:
            size = random.randrange(96) + 8
            encoded = sign_crc32(os.urandom(size))
            self._buffer = data
        self.has_sent_header = True
        return encoded

    def decode(self, data: bytes) -> tuple[bytes, bool]:
        data = bytes(data)
        if self.raw_trans_received:
            return data, False
        self.raw_trans_received = True
        return data, True