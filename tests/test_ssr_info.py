import pytest

from sockshade.ssr_info import ServerInfo, get_head_size


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"\x01\x7f\x00\x00\x01\x00\x50", 7),
        (b"\x04" + bytes(18), 19),
        (b"\x09\x00\x00", 7),  # only the low three bits select the type
        (b"\x0c" + bytes(20), 19),
    ],
)
def test_head_size_by_type(data, expected):
    assert get_head_size(data, 30) == expected


def test_head_size_domain_uses_length_byte():
    data = b"\x03\x0bexample.com\x00\x50"
    assert get_head_size(data, 30) == 4 + data[1]


@pytest.mark.parametrize("data", [None, b"", b"\x01", b"\x02\x00\x00", b"\x07abc"])
def test_head_size_falls_back_to_default(data):
    assert get_head_size(data, 30) == 30
    assert get_head_size(data, 12) == 12


def test_server_info_defaults():
    info = ServerInfo()
    assert info.host == ""
    assert info.port == 0
    assert info.key == b""
    assert info.head_len == 0
    assert info.tcp_mss == 0


def test_set_head_len_updates_field():
    info = ServerInfo(host="example.com", port=8388)
    info.set_head_len(b"\x04" + bytes(18), 30)
    assert info.head_len == 19
    info.set_head_len(b"", 30)
    assert info.head_len == 30
    assert info.host == "example.com"