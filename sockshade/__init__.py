"""Shadowsocks stream ciphers, ShadowsocksR ciphers, obfuscators and protocols, and SOCKS4 and reject dialers."""

__version__ = "0.1.0"