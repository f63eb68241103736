import pytest

from sockshade.socks4 import Socks4Dialer, Socks4Error, build_request

GRANTED = b"\x00\x5a" + bytes(6)


class _FakeConn:
    def __init__(self, reply):
        self.reply = bytearray(reply)
        self.sent = b""
        self.closed = False

    def sendall(self, data):
        self.sent += data

    def recv(self, size):
        out = bytes(self.reply[:size])
        del self.reply[:size]
        return out

    def close(self):
        self.closed = True


class _FakeDialer:
    addr = "next-hop:1"

    def __init__(self, reply):
        self.conn = _FakeConn(reply)
        self.calls = []

    def dial(self, network, addr):
        self.calls.append((network, addr))
        return self.conn


def test_build_request_socks4():
    assert build_request("ignored", 80, "1.2.3.4", False) == bytes([4, 1, 0, 80, 1, 2, 3, 4, 0])


def test_build_request_socks4a_appends_host():
    request = build_request("example.com", 80, "0.0.0.1", True)
    assert request == bytes([4, 1, 0, 80, 0, 0, 0, 1, 0]) + b"example.com\x00"


def test_dial_with_ip_target():
    dialer = _FakeDialer(GRANTED)
    client = Socks4Dialer("socks4://proxy.example.com:1080", dialer)
    conn = client.dial("tcp", "10.0.0.2:8080")
    assert conn is dialer.conn
    assert dialer.calls == [("tcp", "proxy.example.com:1080")]
    assert conn.sent == build_request("", 8080, "10.0.0.2", False)
    assert not conn.closed


def test_socks4a_sends_hostname():
    dialer = _FakeDialer(GRANTED)
    client = Socks4Dialer("socks4a://proxy.example.com:1080", dialer)
    conn = client.dial("tcp4", "example.com:443")
    assert conn.sent == build_request("example.com", 443, "0.0.0.1", True)


def test_rejected_request_closes_connection():
    dialer = _FakeDialer(b"\x00\x5b" + bytes(6))
    client = Socks4Dialer("socks4://proxy.example.com:1080", dialer)
    with pytest.raises(Socks4Error, match="rejected"):
        client.dial("tcp", "10.0.0.2:80")
    assert dialer.conn.closed


def test_unknown_reply_code():
    dialer = _FakeDialer(b"\x00\x01" + bytes(6))
    client = Socks4Dialer("socks4://proxy.example.com:1080", dialer)
    with pytest.raises(Socks4Error, match="unknown error"):
        client.dial("tcp", "10.0.0.2:80")


def test_short_reply_raises():
    dialer = _FakeDialer(b"\x00\x5a")
    client = Socks4Dialer("socks4://proxy.example.com:1080", dialer)
    with pytest.raises(Socks4Error, match="failed to read greeting"):
        client.dial("tcp", "10.0.0.2:80")


def test_unsupported_network():
    dialer = _FakeDialer(GRANTED)
    client = Socks4Dialer("socks4://proxy.example.com:1080", dialer)
    with pytest.raises(Socks4Error, match="udp"):
        client.dial("udp", "10.0.0.2:80")
    assert dialer.calls == []


def test_ipv6_target_is_refused():
    dialer = _FakeDialer(GRANTED)
    client = Socks4Dialer("socks4://proxy.example.com:1080", dialer)
    with pytest.raises(Socks4Error, match="IPv6"):
        client.dial("tcp", "[2001:db8::1]:80")
    assert dialer.conn.closed


def test_bad_port_is_refused():
    client = Socks4Dialer("socks4://proxy.example.com:1080", _FakeDialer(GRANTED))
    with pytest.raises(Socks4Error, match="port number"):
        client.connect(_FakeConn(GRANTED), "10.0.0.2:99999")


def test_udp_is_not_supported():
    client = Socks4Dialer("socks4://proxy.example.com:1080", _FakeDialer(GRANTED))
    with pytest.raises(Socks4Error):
        client.dial_udp("udp", "10.0.0.2:53")


def test_addr_falls_back_to_next_dialer():
    dialer = _FakeDialer(GRANTED)
    assert Socks4Dialer("socks4://", dialer).addr == dialer.addr
    assert Socks4Dialer("socks4://user@proxy.example.com:1080", dialer).addr == "proxy.example.com:1080"