"""Server description shared by SSR obfuscation and protocol plugins."""

from __future__ import annotations

from dataclasses import dataclass

OBFS_HMAC_SHA1_LEN = 10

ERR_AUTH_SHA1V4_CRC32 = "auth_sha1_v4 post decrypt data crc32 error"
ERR_AUTH_SHA1V4_DATA_LENGTH = "auth_sha1_v4 post decrypt data length error"
ERR_AUTH_SHA1V4_CHECKSUM = "auth_sha1_v4 post decrypt incorrect checksum"
ERR_AUTH_AES128_HMAC = "auth_aes128_* post decrypt incorrect hmac"
ERR_AUTH_AES128_DATA_LENGTH = "auth_aes128_* post decrypt length mismatch"
ERR_AUTH_CHAIN_DATA_LENGTH = "auth_chain_* post decrypt length mismatch"
ERR_AUTH_CHAIN_HMAC = "auth_chain_* post decrypt incorrect hmac"
ERR_AUTH_AES128_CHECKSUM = "auth_aes128_* post decrypt incorrect checksum"
ERR_AUTH_AES128_POS_RANGE = "auth_aes128_* post decrypt pos out of range"
ERR_TLS12_TOO_SHORT = "tls1.2_ticket_auth too short data"
ERR_TLS12_HMAC = "tls1.2_ticket_auth hmac verifying failed"
ERR_TLS12_MAGIC = "tls1.2_ticket_auth incorrect magic number"


class SSRError(Exception):
    """Raised when SSR framing, authentication or configuration fails."""


def get_head_size(data: bytes | None, default: int) -> int:
    """Return the length of the SOCKS address header at the start of ``data``."""
    if data is None or len(data) < 2:
        return default
    head_type = data[0] & 0x07
    if head_type == 1:
        return 7  # IPv4: type + 4 + port
    if head_type == 4:
        return 19  # IPv6: type + 16 + port
    if head_type == 3:
        return 4 + data[1]  # domain: type + len + name + port
    return default


@dataclass
class ServerInfo:
    """Connection parameters handed to obfuscation and protocol layers."""

    host: str = ""
    port: int = 0
    param: str = ""
    iv: bytes = b""
    iv_len: int = 0
    recv_iv: bytes = b""
    recv_iv_len: int = 0
    key: bytes = b""
    key_len: int = 0
    head_len: int = 0
    tcp_mss: int = 0
    overhead: int = 0

    def set_head_len(self, data: bytes | None, default: int) -> None:
        """Set ``head_len`` from the address header found in ``data``."""
        self.head_len = get_head_size(data, default)