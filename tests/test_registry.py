import pytest

from sockshade.registry import register_server, server_from_url, server_schemes


def _creator(url, proxy):
    return ("created", url, proxy)


def test_registered_creator_is_called():
    register_server("TestEcho", _creator)
    proxy = object()
    assert server_from_url("testecho://host:1080", proxy) == ("created", "testecho://host:1080", proxy)


def test_scheme_lookup_is_case_insensitive():
    register_server("testcase", _creator)
    proxy = object()
    result = server_from_url("TESTCASE://:8080", proxy)
    assert result[1] == "TESTCASE://:8080"
    assert result[2] is proxy


def test_missing_scheme_defaults_to_mixed():
    register_server("mixed", _creator)
    proxy = object()
    assert server_from_url(":8443", proxy) == ("created", "mixed://:8443", proxy)


def test_unknown_scheme_raises():
    with pytest.raises(ValueError, match="unknown scheme 'nosuchscheme'"):
        server_from_url("nosuchscheme://host:1", object())


def test_none_proxy_raises():
    register_server("testnone", _creator)
    with pytest.raises(ValueError):
        server_from_url("testnone://host:1", None)


def test_schemes_are_sorted_and_lower_case():
    register_server("ZZLast", _creator)
    register_server("aafirst", _creator)
    names = server_schemes().split(" ")
    assert names == sorted(names)
    assert "zzlast" in names
    assert "aafirst" in names
    assert "ZZLast" not in names