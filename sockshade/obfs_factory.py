"""Look up SSR obfuscation layers by name."""

from __future__ import annotations

from typing import Callable

from .ssr_info import SSRError
from .ssr_obfs import HttpSimpleObfs, Obfs, PlainObfs, RandomHeadObfs
from .ssr_tls_obfs import TLS12TicketAuth

_CREATORS: dict[str, Callable[[], Obfs]] = {
    "plain": PlainObfs,
    "http_simple": lambda: HttpSimpleObfs(method_get=True),
    "http_post": lambda: HttpSimpleObfs(method_get=False),
    "random_head": RandomHeadObfs,
    "tls1.2_ticket_auth": lambda: TLS12TicketAuth(fast_auth=False),
    "tls1.2_ticket_fastauth": lambda: TLS12TicketAuth(fast_auth=True),
}


def new_obfs(name: str) -> Obfs:
    """Create a fresh obfuscation layer; names are case-insensitive."""
    try:
        creator = _CREATORS[name.lower()]
    except KeyError:
        raise SSRError("unsupported obfs type: " + name) from None
    return creator()


def obfs_names() -> list[str]:
    """Return the registered obfuscation names, sorted."""
    return sorted(_CREATORS)