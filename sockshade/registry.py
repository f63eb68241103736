"""Registry of proxy server creators, looked up by URL scheme."""

from __future__ import annotations

from typing import Any, Callable

ServerCreator = Callable[[str, Any], Any]

_SERVER_CREATORS: dict[str, ServerCreator] = {}


def register_server(name: str, creator: ServerCreator) -> None:
    """Register ``creator`` for the scheme ``name`` (case-insensitive)."""
    _SERVER_CREATORS[name.lower()] = creator


def server_from_url(url: str, proxy: Any) -> Any:
    """Create a server for ``url`` with the registered creator of its scheme.

    A URL without a scheme is treated as ``mixed://``.
    """
    if proxy is None:
        raise ValueError("server_from_url: proxy cannot be None")
    if "://" not in url:
        url = "mixed://" + url
    scheme = url[: url.index(":")]
    try:
        creator = _SERVER_CREATORS[scheme.lower()]
    except KeyError:
        raise ValueError(f"unknown scheme '{scheme}'") from None
    return creator(url, proxy)


def server_schemes() -> str:
    """Return the registered schemes, sorted and separated by spaces."""
    return " ".join(sorted(_SERVER_CREATORS))