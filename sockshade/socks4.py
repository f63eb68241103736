"""A SOCKS4 / SOCKS4a client dialer."""

from __future__ import annotations

import ipaddress
import socket
from typing import Any
from urllib.parse import urlsplit

VERSION = 4
CONNECT_COMMAND = 1

_REPLY_ERRORS = {
    0x5B: "connection request rejected or failed",
    0x5C: "connection request failed because client is not running identd "
    "(or not reachable from the server)",
    0x5D: "connection request failed because client's identd could not "
    "confirm the user ID in the request",
}
_GRANTED = 0x5A


class Socks4Error(OSError):
    """Raised when a SOCKS4 request cannot be made or is refused."""


def build_request(host: str, port: int, ip: Any, socks4a: bool) -> bytes:
    """Return the CONNECT request for ``ip``:``port``.

    With ``socks4a`` the host name follows the empty user id.
    """
    request = (
        bytes([VERSION, CONNECT_COMMAND])
        + (port & 0xFFFF).to_bytes(2, "big")
        + ipaddress.IPv4Address(ip).packed
        + b"\x00"
    )
    if socks4a:
        request += host.encode("utf-8") + b"\x00"
    return request


def _split_host_port(target: str) -> tuple[str, str]:
    if target.startswith("["):
        end = target.find("]")
        if end < 0 or target[end + 1 : end + 2] != ":":
            raise Socks4Error(f"missing port in address {target}")
        return target[1:end], target[end + 2 :]
    host, sep, port = target.rpartition(":")
    if not sep:
        raise Socks4Error(f"missing port in address {target}")
    if ":" in host:
        raise Socks4Error(f"too many colons in address {target}")
    return host, port


def _to_ipv4(ip: ipaddress.IPv4Address | ipaddress.IPv6Address) -> ipaddress.IPv4Address | None:
    if isinstance(ip, ipaddress.IPv4Address):
        return ip
    return ip.ipv4_mapped


def _lookup_ip(host: str) -> ipaddress.IPv4Address:
    try:
        infos = socket.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except OSError as exc:
        raise Socks4Error(f"cannot resolve host {host}: {exc}") from exc
    if not infos:
        raise Socks4Error("cannot resolve host: " + host)
    ip = _to_ipv4(ipaddress.ip_address(infos[0][4][0].split("%")[0]))
    if ip is None:
        raise Socks4Error("IPv6 is not supported by socks4")
    return ip


def _recv_exact(conn: Any, size: int) -> bytes:
    buf = bytearray()
    while len(buf) < size:
        chunk = conn.recv(size - len(buf))
        if not chunk:
            raise EOFError("unexpected EOF")
        buf += chunk
    return bytes(buf)


class Socks4Dialer:
    """Dial targets through a SOCKS4 (or SOCKS4a) server reached by ``dialer``."""

    def __init__(self, url: str, dialer: Any) -> None:
        parts = urlsplit(url)
        self.dialer = dialer
        self._addr = parts.netloc.rpartition("@")[2]
        self.socks4a = parts.scheme == "socks4a"

    @property
    def addr(self) -> str:
        """The proxy server's address, or the next dialer's when none is set."""
        return self._addr or self.dialer.addr

    def dial(self, network: str, addr: str) -> Any:
        """Connect to ``addr`` through the proxy and return the connection."""
        if network not in ("tcp", "tcp4"):
            raise Socks4Error("no support for connection type " + network)
        conn = self.dialer.dial(network, self._addr)
        try:
            self.connect(conn, addr)
        except BaseException:
            conn.close()
            raise
        return conn

    def dial_udp(self, network: str, addr: str) -> Any:
        """SOCKS4 carries no UDP; always raises."""
        raise Socks4Error("udp is not supported by socks4")

    def connect(self, conn: Any, target: str) -> None:
        """Ask the server on ``conn`` to extend the connection to ``target``."""
        host, port_text = _split_host_port(target)
        if not port_text.isdigit() or int(port_text) > 0xFFFF:
            raise Socks4Error("failed to parse port number: " + port_text)
        port = int(port_text)

        try:
            parsed = ipaddress.ip_address(host)
        except ValueError:
            parsed = None

        if parsed is None:
            ip = ipaddress.IPv4Address("0.0.0.1") if self.socks4a else _lookup_ip(host)
        else:
            ip = _to_ipv4(parsed)
            if ip is None:
                raise Socks4Error("IPv6 is not supported by socks4")

        request = build_request(host, port, ip, self.socks4a and parsed is None)
        try:
            conn.sendall(request)
        except OSError as exc:
            raise Socks4Error(
                f"failed to write greeting to socks4 proxy at {self._addr}: {exc}"
            ) from exc
        try:
            reply = _recv_exact(conn, 8)
        except (OSError, EOFError) as exc:
            raise Socks4Error(
                f"failed to read greeting from socks4 proxy at {self._addr}: {exc}"
            ) from exc

        if reply[1] != _GRANTED:
            raise Socks4Error(_REPLY_ERRORS.get(reply[1], "connection request failed, unknown error"))