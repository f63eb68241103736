import pytest

from sockshade.reject import Reject, RejectError, new_reject_dialer


def test_addr_is_reject():
    assert Reject().addr == "REJECT"


def test_dial_raises():
    with pytest.raises(RejectError, match="REJECT"):
        Reject().dial("tcp", "example.com:80")


def test_dial_udp_raises():
    with pytest.raises(RejectError, match="REJECT"):
        Reject().dial_udp("udp", "example.com:53")


def test_factory_returns_rejecting_dialer():
    dialer = new_reject_dialer("reject://", None)
    assert dialer.addr == "REJECT"
    with pytest.raises(RejectError):
        dialer.dial("tcp", "example.com:443")


def test_reject_error_is_connection_refused():
    with pytest.raises(ConnectionRefusedError):
        Reject().dial("tcp", "example.com:80")