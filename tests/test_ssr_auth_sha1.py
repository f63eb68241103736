import pytest

from sockshade.ssr_auth_sha1 import AuthSHA1v4
from sockshade.ssr_checksums import calc_crc32
from sockshade.ssr_info import (
    ERR_AUTH_SHA1V4_CHECKSUM,
    ERR_AUTH_SHA1V4_CRC32,
    ERR_AUTH_SHA1V4_DATA_LENGTH,
    SSRError,
)
from sockshade.ssr_protocol import AuthData
from sockshade.ssr_tools import hmac_sha1

IV = b"\x01" * 16
KEY = b"\x02" * 16
HEAD = b"\x03\x05a.com\x00\x50"


def make_protocol():
    p = AuthSHA1v4()
    p.server_info.iv = IV
    p.server_info.iv_len = 16
    p.server_info.key = KEY
    p.server_info.key_len = 16
    return p


def auth_data_offset(packet):
    if packet[6] != 0xFF:
        return packet[6] + 6
    return int.from_bytes(packet[7:9], "big") + 6


def test_overhead():
    assert AuthSHA1v4().overhead == 7


def test_chunks_round_trip():
    sender = make_protocol()
    sender.has_sent_header = True
    payload = bytes(range(256)) * 40
    encoded = sender.pre_encrypt(payload)
    receiver = make_protocol()
    assert receiver.post_decrypt(encoded) == (payload, len(encoded))


def test_empty_write_produces_nothing():
    p = make_protocol()
    assert p.pre_encrypt(b"") == b""
    assert not p.has_sent_header


def test_incomplete_chunk_is_left_unread():
    sender = make_protocol()
    sender.has_sent_header = True
    encoded = sender.pre_encrypt(b"hello world")
    assert make_protocol().post_decrypt(encoded[:-1]) == (b"", 0)


def test_first_write_has_auth_header():
    p = make_protocol()
    payload = b"payload bytes"
    out = p.pre_encrypt(HEAD + payload)
    auth_len = int.from_bytes(out[:2], "big")
    auth = out[:auth_len]
    offset = auth_data_offset(auth)
    assert auth[offset + 12 : offset + 12 + len(HEAD)] == HEAD
    assert auth[-10:] == hmac_sha1(IV + KEY, auth[:-10])[:10]
    assert auth[offset + 4 : offset + 8] == p.get_data().client_id[:4]
    rest, used = make_protocol().post_decrypt(out[auth_len:])
    assert rest == payload
    assert used == len(out) - auth_len


def test_connection_ids_advance_for_shared_data():
    shared = AuthData()
    first = make_protocol()
    second = make_protocol()
    first.set_data(shared)
    second.set_data(shared)
    a = first.pre_encrypt(HEAD)
    b = second.pre_encrypt(HEAD)
    oa, ob = auth_data_offset(a), auth_data_offset(b)
    id_a = int.from_bytes(a[oa + 8 : oa + 12], "little")
    id_b = int.from_bytes(b[ob + 8 : ob + 12], "little")
    assert id_b == id_a + 1
    assert a[oa + 4 : oa + 8] == b[ob + 4 : ob + 8]


def test_set_data_ignores_foreign_objects():
    p = AuthSHA1v4()
    p.set_data("not auth data")
    data = p.get_data()
    assert data.connection_id == 0
    assert data.client_id == b""
    assert p.get_data() is data


def test_crc_error():
    sender = make_protocol()
    sender.has_sent_header = True
    encoded = bytearray(sender.pre_encrypt(b"abc"))
    encoded[3] ^= 0xFF
    with pytest.raises(SSRError, match=ERR_AUTH_SHA1V4_CRC32):
        make_protocol().post_decrypt(bytes(encoded))


def test_length_error():
    length = (7).to_bytes(2, "big")
    crc = (calc_crc32(length) & 0xFFFF).to_bytes(2, "little")
    with pytest.raises(SSRError, match=ERR_AUTH_SHA1V4_DATA_LENGTH):
        make_protocol().post_decrypt(length + crc + b"\x00" * 4)


def test_checksum_error():
    sender = make_protocol()
    sender.has_sent_header = True
    encoded = bytearray(sender.pre_encrypt(b"abc"))
    encoded[-1] ^= 0xFF
    with pytest.raises(SSRError, match=ERR_AUTH_SHA1V4_CHECKSUM):
        make_protocol().post_decrypt(bytes(encoded))