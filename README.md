# sockshade

Building blocks for Shadowsocks-style proxies, usable as a library:

- **Shadowsocks stream ciphers** (`sockshade.ss_stream`) – AES-CTR, AES-CFB,
  ChaCha20 (original, IETF and XChaCha20) and RC4-MD5, with `pack`/`unpack`
  for single packets and wrappers for stream and datagram sockets.
- **ShadowsocksR pieces** – the password-keyed stream cipher table
  (`sockshade.ssr_cipher`), the obfuscators `plain`, `http_simple`,
  `http_post`, `random_head`, `tls1.2_ticket_auth` and
  `tls1.2_ticket_fastauth` (`sockshade.obfs_factory`), and the protocols
  `origin`, `verify_sha1` and `auth_sha1_v4`.
- A **SOCKS4/SOCKS4a** client dialer, a **reject** dialer that refuses every
  request, and a small registry of server creators keyed by URL scheme.

## Installation

```
pip install sockshade
```

To run the test suite:

```
pip install "sockshade[test]"
pytest
```

## Shadowsocks stream ciphers

Each constructor takes a raw key: `aes_ctr` and `aes_cfb` take 16, 24 or
32 bytes (other sizes raise `ValueError`); `chacha20_ietf`, `xchacha20` and
`chacha20` need 32 bytes and raise `KeySizeError` otherwise; `rc4_md5` takes
any key.

```python
from sockshade.ss_stream import aes_ctr, pack, unpack
from sockshade.ssr_tools import evp_bytes_to_key

password = "password"
cipher = aes_ctr(evp_bytes_to_key(password, 32))

packet = pack(b"payload", cipher)      # random IV + ciphertext
assert unpack(packet, cipher) == b"payload"
```

`unpack` raises `ShortPacketError` for a packet shorter than the IV.

`StreamConnection(sock, cipher)` wraps a connected stream socket: the first
`write` sends a fresh IV in clear, the first `read` consumes the peer's IV,
and an empty `read` result means end of stream. `PacketConnection(sock,
cipher)` wraps a datagram socket with `send_to(data, addr)` and
`recv_from(size)`, each packet carrying its own IV. Both have `close()` and
work as context managers.

```python
import socket

from sockshade.ss_stream import StreamConnection, chacha20_ietf
from sockshade.ssr_tools import evp_bytes_to_key

password = "password"
sock = socket.create_connection(("127.0.0.1", 8388))
with StreamConnection(sock, chacha20_ietf(evp_bytes_to_key(password, 32))) as conn:
    conn.write(b"\x03\x0bexample.com\x00\x50")   # SOCKS-style target address
    conn.write(b"GET / HTTP/1.0\r\n\r\n")
    reply = conn.read(4096)
```

## ShadowsocksR

### Ciphers

`StreamCipher(method, password)` derives its key from the password with
`evp_bytes_to_key`. An empty method means `rc4-md5`; an empty password or an
unknown method raises `SSRError`. `check_cipher_method` validates a name
without building a cipher, and `new_stream` builds a bare keystream function.

```python
from sockshade.ssr_cipher import StreamCipher

password = "password"
sender = StreamCipher("aes-256-cfb", password)
iv = sender.init_encrypt()            # picks a random IV once, then reuses it
ciphertext = sender.encrypt(b"hello")

receiver = StreamCipher("aes-256-cfb", password)
receiver.init_decrypt(iv)
assert receiver.decrypt(ciphertext) == b"hello"
```

Supported methods: `aes-128/192/256-cfb`, `aes-128/192/256-ctr`,
`aes-128/192/256-ofb` (run in CTR mode), `des-cfb`, `bf-cfb`, `cast5-cfb`,
`rc4-md5`, `rc4-md5-6`, `chacha20`, `chacha20-ietf`, `salsa20`,
`camellia-128/192/256-cfb`, `idea-cfb`, `rc2-cfb`, `seed-cfb` (served by RC2),
`rc4` and `none`. `copy()` returns a cipher with the same key and IV but no
running streams.

### Obfuscators

```python
from sockshade.obfs_factory import new_obfs, obfs_names
from sockshade.ssr_info import ServerInfo

print(obfs_names())
obfs = new_obfs("http_simple")                   # names are case-insensitive
obfs.server_info = ServerInfo(host="example.com", port=80)
wire = obfs.encode(b"\x03\x0bexample.com\x00\x50payload")
payload, send_back = obfs.decode(b"HTTP/1.1 200 OK\r\n\r\nbody")
```

`encode` returns the bytes to put on the wire; `decode` returns the unwrapped
bytes and a flag asking the caller to send an empty write back (used by
`random_head` and the TLS handshake). An unknown name raises `SSRError`. The
TLS obfuscator keeps a `TLSAuthData` client identity that `get_data` /
`set_data` share between connections; `pack_record` and `sni_extension` in
`sockshade.ssr_tls_obfs` build its records and server-name extension.

### Protocols

`OriginProtocol` and `VerifySHA1Protocol` live in `sockshade.ssr_protocol`,
`AuthSHA1v4` in `sockshade.ssr_auth_sha1`. Each has `pre_encrypt(data)`, which
frames plaintext, and `post_decrypt(data)`, which returns the unframed payload
and the number of input bytes it used. They read the key, IV and header length
from their `server_info`. `AuthSHA1v4` shares an `AuthData` (client id and
connection counter) through `get_data` / `set_data`; framing and checksum
failures raise `SSRError`.

### Helpers

- `sockshade.ssr_checksums`: `calc_adler32`, `check_adler32`, `calc_crc32`,
  `sign_crc32`, `check_crc32`.
- `sockshade.ssr_tools`: `hmac_md5`, `hmac_sha1`, `md5_sum`, `sha1_sum`,
  `evp_bytes_to_key` and the `Shift128Plus` xorshift128+ generator.
- `sockshade.ssr_info`: `ServerInfo`, `get_head_size` and `SSRError`.

## SOCKS4 and reject

```python
from sockshade.reject import Reject, RejectError
from sockshade.socks4 import Socks4Dialer

dialer = Socks4Dialer("socks4a://127.0.0.1:1080", upstream)
conn = dialer.dial("tcp", "example.com:80")

try:
    Reject().dial("tcp", "example.com:80")
except RejectError:
    pass
```

`upstream` is any object with `dial(network, addr)` and an `addr` attribute
that opens the connection to the SOCKS4 server, returning a socket-like object
with `sendall`, `recv` and `close`. With `socks4a` host names are sent to the
server unresolved; with `socks4` they are resolved locally and must be IPv4.
Only `tcp` and `tcp4` are accepted, `dial_udp` always fails, and refusals from
the server raise `Socks4Error`. `build_request` returns the raw CONNECT
request. `new_reject_dialer(url, dialer)` returns a `Reject`.

## Server registry

```python
from sockshade.registry import register_server, server_from_url, server_schemes

register_server("echo", lambda url, proxy: EchoServer(url, proxy))
server = server_from_url("echo://:8080", proxy)
print(server_schemes())   # sorted, space-separated
```

A URL without `://` is treated as `mixed://`. Schemes match
case-insensitively; an unknown scheme or a `None` proxy raises `ValueError`.

## What the package does not do

- There is no command-line program and no running proxy: nothing listens for
  clients, and the registry starts empty until you register creators.
- Shadowsocks AEAD ciphers (AES-GCM, ChaCha20-Poly1305) are not included, nor
  is a function that picks a Shadowsocks cipher by method name.
- Of the ShadowsocksR protocols only `origin`, `verify_sha1` and
  `auth_sha1_v4` are provided; `auth_aes128_*` and `auth_chain_*` are not, and
  there is no lookup of protocols by name.
- There is no ShadowsocksR connection object: chaining cipher, protocol and
  obfuscator over a socket is left to the caller.