"""httpx transport that answers requests from fixtures in demo mode.

Mount it on any ``httpx.AsyncClient``; requests without a fixture go to
the wrapped transport::

    demo = DemoTransport(
        httpx.AsyncHTTPTransport(),
        {
            "GET /api/users": [{"id": 1, "name": "Demo"}],
            "GET /api/users/:id": lambda ctx: {"id": ctx.params["id"]},
            "POST /api/users": create_user,
        },
        is_enabled=switch,
    )
    client = httpx.AsyncClient(transport=demo, base_url="https://api.example.com")

Fixture results are served as ``200`` JSON responses carrying an
``X-DemoKit-Mock: true`` header. A fixture may return an ``httpx.Response``
to control status and headers itself. Fixtures of one transport share a
``SessionState`` so a ``POST`` can be read back by a later ``GET``.

Requires ``httpx`` (``pip install demokit[http]``).
"""

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from demokit.config import InterceptorConfig
from demokit.context import HttpContext, SessionState
from demokit.errors import ConfigurationError
from demokit.http.forms import is_form_content_type, parse_form_data
from demokit.http.headers import Headers
from demokit.http.query import QueryParams
from demokit.interceptor import Interceptor, Predicate
from demokit.patterns.matcher import DecodedPath
from demokit.registry import FixtureMatch, FixtureRegistry

try:
    import httpx
except ImportError:
    msg = "DemoTransport requires the 'httpx' package. Install it with: pip install demokit[http]"
    raise ConfigurationError(msg) from None

__all__ = ["MOCK_HEADER", "DemoTransport", "SessionState", "decode_body"]

logger = logging.getLogger("demokit.adapters")

MOCK_HEADER = "X-DemoKit-Mock"


def decode_body(content: bytes, content_type: str | None) -> Any:
    """Decode a request body for a fixture.

    Empty bodies are ``None``. JSON bodies are decoded; form bodies become
    ``FormData``. Anything else, including JSON that fails to parse, is
    returned as text.
    """
    if not content:
        return None
    if is_form_content_type(content_type):
        return parse_form_data(content, content_type or "")
    text = content.decode("utf-8", errors="replace")
    if content_type and "json" in content_type.lower():
        try:
            return json.loads(text)
        except ValueError:
            logger.debug("Request body is not valid JSON; passing it as text")
    return text


def _mock_response(result: Any, request: httpx.Request) -> httpx.Response:
    if isinstance(result, httpx.Response):
        return result
    return httpx.Response(200, json=result, headers={MOCK_HEADER: "true"}, request=request)


class DemoTransport(httpx.AsyncBaseTransport):
    """An ``httpx`` transport serving fixtures when demo mode is on.

    Args:
        transport: The real transport. With ``None``, requests that no
            fixture answers raise ``FixtureNotFound``.
        fixtures: Path fixtures keyed ``"METHOD /path"`` or by bare path
            (any verb). Values may also be ``MethodHandlers``.
        is_enabled: Demo-mode predicate, called with the ``httpx.Request``.
        config: Delay and hooks.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        fixtures: FixtureRegistry | Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
        *,
        is_enabled: Predicate = False,
        config: InterceptorConfig | None = None,
    ) -> None:
        if isinstance(fixtures, FixtureRegistry):
            if fixtures.kind != "path":
                msg = f"Transport fixtures need a 'path' registry, got {fixtures.kind!r}"
                raise ConfigurationError(msg)
            self.registry = fixtures
        else:
            self.registry = FixtureRegistry("path", fixtures)
        self.transport = transport
        self.session = SessionState()
        self._interceptor = Interceptor(
            self.registry, kind="http", is_enabled=is_enabled, config=config
        )

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        path = DecodedPath(request.url.path or "/")
        method = request.method.upper()

        async def build_context(found: FixtureMatch) -> HttpContext:
            content = await request.aread()
            return HttpContext(
                url=str(request.url),
                method=method,
                params=dict(found.params),
                query=QueryParams(request.url.query),
                headers=Headers(request.headers.raw),
                body=decode_body(content, request.headers.get("content-type")),
                session=self.session,
            )

        real = None if self.transport is None else (lambda: self.transport.handle_async_request(request))
        result = await self._interceptor.intercept(
            path, real, build_context, method=method, predicate_args=(request,)
        )
        return _mock_response(result, request)

    def set_fixture(self, key: str, fixture: Any) -> None:
        self.registry.set(key, fixture)

    def remove_fixture(self, key: str) -> bool:
        return self.registry.remove(key)

    def reset_session(self) -> None:
        """Forget everything fixtures stored in the session."""
        self.session.clear()

    async def aclose(self) -> None:
        if self.transport is not None:
            await self.transport.aclose()

    def __repr__(self) -> str:
        return f"DemoTransport({len(self.registry)} fixture(s))"
