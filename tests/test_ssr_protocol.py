import pytest

from sockshade.ssr_info import SSRError
from sockshade.ssr_protocol import (
    AuthData,
    OriginProtocol,
    Protocol,
    VerifySHA1Protocol,
)
from sockshade.ssr_tools import hmac_sha1

IV = b"\x01" * 16
KEY = b"\x02" * 16
HEAD = b"\x01\x7f\x00\x00\x01\x00\x50"


def make_verify():
    p = VerifySHA1Protocol()
    p.server_info.iv = IV
    p.server_info.key = KEY
    p.server_info.head_len = len(HEAD)
    return p


def test_origin_passes_data_through():
    p = OriginProtocol()
    assert p.pre_encrypt(b"abc") == b"abc"
    assert p.post_decrypt(b"hello") == (b"hello", 5)
    assert p.overhead == 0


def test_base_protocol_has_no_shared_data():
    p = Protocol()
    p.set_data(AuthData())
    assert p.get_data() is None


def test_auth_data_starts_empty():
    data = AuthData()
    assert data.client_id == b""
    assert data.connection_id == 0


def test_verify_sha1_header_is_marked_and_signed():
    p = make_verify()
    payload = b"GET / HTTP/1.1\r\n"
    out = p.pre_encrypt(HEAD + payload)
    head = bytes([HEAD[0] | 0x10]) + HEAD[1:]
    assert out[0] == 0x11
    assert out[: len(HEAD)] == head
    assert out[len(HEAD) : len(HEAD) + 20] == hmac_sha1(IV + KEY, head)
    chunk = out[len(HEAD) + 20 :]
    assert int.from_bytes(chunk[:2], "big") == len(payload)
    assert chunk[22:] == payload
    assert p.verify_chunk(IV, 0, payload, chunk[2:22])
    assert not p.verify_chunk(IV, 1, payload, chunk[2:22])


def test_verify_sha1_does_not_modify_input():
    p = make_verify()
    data = bytearray(HEAD + b"xyz")
    p.pre_encrypt(data)
    assert bytes(data) == HEAD + b"xyz"


def test_verify_sha1_splits_large_payload_into_chunks():
    p = make_verify()
    p.has_sent_header = True
    payload = bytes(range(256)) * 20
    out = p.pre_encrypt(payload)
    first_len = int.from_bytes(out[:2], "big")
    assert first_len == 4096
    first = out[22 : 22 + first_len]
    rest = out[22 + first_len :]
    second_len = int.from_bytes(rest[:2], "big")
    assert first + rest[22:] == payload
    assert first_len + second_len == len(payload)
    assert p.verify_chunk(IV, 0, first, out[2:22])
    assert p.verify_chunk(IV, 1, rest[22:], rest[2:22])
    assert p.chunk_id == 2


def test_verify_sha1_header_only_once():
    p = make_verify()
    p.pre_encrypt(HEAD + b"a")
    out = p.pre_encrypt(b"bcd")
    assert out[22:] == b"bcd"
    assert p.verify_chunk(IV, 1, b"bcd", out[2:22])


def test_verify_sha1_rejects_short_first_write():
    p = make_verify()
    with pytest.raises(SSRError):
        p.pre_encrypt(b"\x01\x02")


def test_verify_sha1_post_decrypt_is_identity():
    p = make_verify()
    assert p.post_decrypt(b"data") == (b"data", 4)