"""Test helpers for code that uses demokit.

Build requests without a server, record hook calls, and check whether
an HTTP response came from a fixture::

    recorder = CallRecorder()
    config = InterceptorConfig(on_missing=recorder)
    ...
    assert recorder.calls == [("loader", "/missing")]
"""

import threading
from collections.abc import Mapping
from typing import Any

from demokit.adapters.routes import RouteArgs
from demokit.http.headers import HeaderPairs
from demokit.http.request import Request


def make_request(
    method: str = "GET",
    url: str = "/",
    *,
    headers: Mapping[str, str] | HeaderPairs | None = None,
    body: bytes | str = b"",
    cookies: Mapping[str, str] | None = None,
) -> Request:
    """A ``Request`` for tests. *cookies* are folded into a ``Cookie`` header."""
    pairs: list[tuple[str, str]] = []
    if headers is not None:
        source = headers.items() if isinstance(headers, Mapping) else headers
        pairs.extend((_text(k), _text(v)) for k, v in source)
    if cookies:
        pairs.append(("cookie", "; ".join(f"{name}={value}" for name, value in cookies.items())))
    return Request.build(method, url, headers=pairs, body=body)


def route_args(
    method: str = "GET",
    url: str = "/",
    params: Mapping[str, str] | None = None,
    **request_kwargs: Any,
) -> RouteArgs:
    """``RouteArgs`` around ``make_request(method, url, ...)``."""
    return RouteArgs(request=make_request(method, url, **request_kwargs), params=dict(params or {}))


def _text(value: str | bytes) -> str:
    return value.decode("latin-1") if isinstance(value, bytes) else value


class CallRecorder:
    """Callable that records its positional arguments.

    Usable as any sync hook (``on_missing``, ``on_demo``, ``on_enable``).
    Optionally returns *result* from each call.
    """

    __slots__ = ("_calls", "_lock", "result")

    def __init__(self, result: Any = None) -> None:
        self._calls: list[tuple[Any, ...]] = []
        self._lock = threading.Lock()
        self.result = result

    def __call__(self, *args: Any) -> Any:
        with self._lock:
            self._calls.append(args)
        return self.result

    @property
    def calls(self) -> list[tuple[Any, ...]]:
        return list(self._calls)

    @property
    def call_count(self) -> int:
        return len(self._calls)

    @property
    def called(self) -> bool:
        return bool(self._calls)

    def reset(self) -> None:
        with self._lock:
            self._calls.clear()


def assert_served_fixture(response: Any) -> None:
    """Assert an ``httpx.Response`` was produced by ``DemoTransport``."""
    assert response.headers.get("x-demokit-mock") == "true", (
        f"Response was not served from a fixture (status {response.status_code}).\n"
        f"Headers: {dict(response.headers)}"
    )


def assert_passed_through(response: Any) -> None:
    """Assert an ``httpx.Response`` came from the real transport."""
    assert "x-demokit-mock" not in response.headers, "Response was served from a fixture"
