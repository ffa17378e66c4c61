"""Immutable HTTP request, as seen by route loaders and actions.

Frozen metadata with async body access. Build one from an ASGI scope,
or directly for tests and scripts::

    request = Request.build("POST", "/users?ref=home", body=b"name=Ada",
                            headers={"content-type": "application/x-www-form-urlencoded"})
    form = await request.form()
"""

import json
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote, urlsplit

from demokit._internal.asgi import Receive, Scope, body_receiver
from demokit.http.cookies import parse_cookies
from demokit.http.forms import FormData, is_form_content_type, parse_form_data
from demokit.http.headers import HeaderPairs, Headers
from demokit.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Cookies are parsed once at creation. The body is read at most once;
    ``body()``, ``json()`` and ``form()`` share the cached bytes.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    cookies: Mapping[str, str]

    # Private: ASGI receive callable for body streaming
    _receive: Receive = field(repr=False, compare=False)

    # Private: body and parsed-form cache (the dict itself stays mutable)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string."""
        qs = str(self.query)
        return f"{self.path}?{qs}" if qs else self.path

    @property
    def is_form(self) -> bool:
        """True for URL-encoded and multipart bodies."""
        return is_form_content_type(self.content_type)

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full body, caching it for later calls."""
        if "body" not in self._cache:
            self._cache["body"] = b"".join([chunk async for chunk in self._chunks()])
        return self._cache["body"]

    async def _chunks(self) -> AsyncIterator[bytes]:
        while True:
            message = await self._receive()
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def text(self) -> str:
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        """Parse the body as JSON."""
        return json.loads(await self.body())

    async def form(self) -> FormData:
        """Parse the body as a form, caching the result.

        Raises:
            ValueError: If the body is not URL-encoded or multipart.
            ConfigurationError: If multipart parsing needs ``python-multipart``.
        """
        if "form" not in self._cache:
            content_type = self.content_type or "application/x-www-form-urlencoded"
            self._cache["form"] = parse_form_data(await self.body(), content_type)
        return self._cache["form"]

    # -- Factories --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> "Request":
        """Create a Request from an ASGI HTTP scope and receive callable."""
        headers = Headers(scope.get("headers", ()))
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            cookies=parse_cookies(*headers.get_list("cookie")),
            _receive=receive,
        )

    @classmethod
    def build(
        cls,
        method: str = "GET",
        url: str = "/",
        *,
        headers: "Mapping[str, str] | HeaderPairs | None" = None,
        body: bytes | str = b"",
    ) -> "Request":
        """Create a Request from a method, a URL (path and query) and a body.

        The path is percent-decoded, matching ASGI's ``scope["path"]``.
        """
        parts = urlsplit(url)
        raw = body.encode("utf-8") if isinstance(body, str) else body
        header_obj = Headers(headers)
        return cls(
            method=method.upper(),
            path=unquote(parts.path) or "/",
            headers=header_obj,
            query=QueryParams(parts.query),
            cookies=parse_cookies(*header_obj.get_list("cookie")),
            _receive=body_receiver(raw),
        )
