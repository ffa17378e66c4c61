"""Tests for demokit.http.cookies — parse_cookies + SetCookie."""

import pytest

from demokit.http.cookies import SetCookie, parse_cookies


class TestParseCookies:
    def test_empty_string(self) -> None:
        assert parse_cookies("") == {}

    def test_multiple_cookies(self) -> None:
        result = parse_cookies("session=abc; theme=dark; lang=en")
        assert result == {"session": "abc", "theme": "dark", "lang": "en"}

    def test_whitespace_handling(self) -> None:
        result = parse_cookies("  session = abc ;  theme = dark  ")
        assert result == {"session": "abc", "theme": "dark"}

    def test_value_with_equals(self) -> None:
        assert parse_cookies("token=abc=def=") == {"token": "abc=def="}

    def test_no_equals_ignored(self) -> None:
        assert parse_cookies("session=abc; broken; theme=dark") == {"session": "abc", "theme": "dark"}

    def test_duplicate_keys_first_wins(self) -> None:
        assert parse_cookies("a=1; a=2") == {"a": "1"}

    def test_quoted_and_encoded(self) -> None:
        assert parse_cookies('name="a%20b"') == {"name": "a b"}

    def test_several_headers(self) -> None:
        assert parse_cookies("a=1", "b=2") == {"a": "1", "b": "2"}


class TestSetCookie:
    def test_defaults(self) -> None:
        cookie = SetCookie("session", "abc")
        assert cookie.to_header_value() == "session=abc; Path=/; HttpOnly; SameSite=Lax"

    def test_all_attributes(self) -> None:
        cookie = SetCookie(
            "s", "v w", max_age=60, domain="example.com", secure=True, httponly=False, samesite="none"
        )
        assert cookie.to_header_value() == (
            "s=v%20w; Max-Age=60; Path=/; Domain=example.com; Secure; SameSite=None"
        )

    def test_deletes(self) -> None:
        assert SetCookie("s", "", max_age=0).deletes
        assert not SetCookie("s", "v").deletes

    def test_frozen(self) -> None:
        cookie = SetCookie("s", "v")
        with pytest.raises(AttributeError):
            cookie.value = "x"  # type: ignore[misc]
