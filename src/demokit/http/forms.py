"""Form body parsing for action fixtures — URL-encoded and multipart.

Action contexts expose the submitted form as ``FormData`` so a fixture
can read fields without touching the raw body::

    def create_user(ctx: ActionContext) -> dict:
        return {"name": ctx.form_data["name"]}

``python-multipart`` is an optional dependency (``pip install demokit[forms]``).
URL-encoded forms use stdlib ``urllib.parse``.
"""

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qsl

from demokit.errors import ConfigurationError

FORM_CONTENT_TYPES: frozenset[str] = frozenset(
    {"application/x-www-form-urlencoded", "multipart/form-data"}
)


def media_type(content_type: str | None) -> str:
    """The bare, lower-cased media type: ``"text/html; charset=utf-8"`` -> ``"text/html"``."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_form_content_type(content_type: str | None) -> bool:
    """True for URL-encoded and multipart bodies."""
    return media_type(content_type) in FORM_CONTENT_TYPES


@dataclass(frozen=True, slots=True)
class UploadFile:
    """A file part of a multipart submission, held in memory."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"


class FormData(Mapping[str, str]):
    """Immutable parsed form.

    ``form["name"]`` returns the first value; ``get_list`` returns all of
    them (checkboxes, multi-selects). Uploaded files live apart from the
    string fields, under ``files``.
    """

    __slots__ = ("_data", "_files")

    def __init__(
        self,
        data: Mapping[str, list[str]] | None = None,
        files: Mapping[str, list[UploadFile]] | None = None,
    ) -> None:
        object.__setattr__(self, "_data", {k: list(v) for k, v in (data or {}).items()})
        object.__setattr__(self, "_files", {k: list(v) for k, v in (files or {}).items()})

    def __setattr__(self, name: str, value: object) -> None:
        msg = "FormData is immutable"
        raise AttributeError(msg)

    @property
    def files(self) -> Mapping[str, UploadFile]:
        """First uploaded file per field name."""
        return {name: uploads[0] for name, uploads in self._files.items() if uploads}

    def get_files(self, key: str) -> list[UploadFile]:
        """Every file uploaded under *key*."""
        return list(self._files.get(key, ()))

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"FormData({self._data!r})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        return values[0] if values else default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._data.get(key, ()))

    def to_dict(self) -> dict[str, str | list[str]]:
        """Plain dict of string fields: repeated names become lists."""
        return {k: v[0] if len(v) == 1 else list(v) for k, v in self._data.items()}


def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse a form body.

    Raises:
        ValueError: If *content_type* is not a form encoding, or a
            multipart body has no boundary.
        ConfigurationError: If the body is multipart and
            ``python-multipart`` is not installed.
    """
    kind = media_type(content_type)
    if kind == "application/x-www-form-urlencoded":
        return _parse_urlencoded(body)
    if kind == "multipart/form-data":
        return _parse_multipart(body, content_type)
    msg = f"Unsupported form content type: {content_type!r}"
    raise ValueError(msg)


def _parse_urlencoded(body: bytes) -> FormData:
    data: dict[str, list[str]] = {}
    for name, value in parse_qsl(body.decode("utf-8"), keep_blank_values=True):
        data.setdefault(name, []).append(value)
    return FormData(data)


def _parse_multipart(body: bytes, content_type: str) -> FormData:
    try:
        from python_multipart.multipart import MultipartParser, parse_options_header
    except ImportError:
        msg = (
            "Multipart form parsing requires the 'python-multipart' package. "
            "Install it with: pip install demokit[forms]"
        )
        raise ConfigurationError(msg) from None

    _, options = parse_options_header(content_type)
    boundary = options.get(b"boundary")
    if not boundary:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    collector = _PartCollector(parse_options_header)
    parser = MultipartParser(boundary, collector.callbacks())
    parser.write(body)
    parser.finalize()
    return FormData(collector.data, collector.files)


class _PartCollector:
    """Accumulates multipart parser callbacks into fields and files."""

    def __init__(self, parse_options: Callable[..., Any]) -> None:
        self._parse_options = parse_options
        self.data: dict[str, list[str]] = {}
        self.files: dict[str, list[UploadFile]] = {}
        self._reset()

    def _reset(self) -> None:
        self._headers: dict[str, str] = {}
        self._field = bytearray()
        self._value = bytearray()
        self._body = bytearray()

    def callbacks(self) -> dict[str, Callable[..., None]]:
        return {
            "on_part_begin": self._reset,
            "on_header_field": self._on_header_field,
            "on_header_value": self._on_header_value,
            "on_header_end": self._on_header_end,
            "on_part_data": self._on_part_data,
            "on_part_end": self._on_part_end,
        }

    def _on_header_field(self, chunk: bytes, start: int, end: int) -> None:
        self._field.extend(chunk[start:end])

    def _on_header_value(self, chunk: bytes, start: int, end: int) -> None:
        self._value.extend(chunk[start:end])

    def _on_header_end(self) -> None:
        self._headers[self._field.decode("latin-1").lower()] = self._value.decode("latin-1")
        self._field = bytearray()
        self._value = bytearray()

    def _on_part_data(self, chunk: bytes, start: int, end: int) -> None:
        self._body.extend(chunk[start:end])

    def _on_part_end(self) -> None:
        disposition = self._headers.get("content-disposition")
        if disposition is None:
            return
        _, params = self._parse_options(disposition)
        name = params.get(b"name")
        if name is None:
            return
        field_name = name.decode("utf-8")
        filename = params.get(b"filename")
        if filename is not None:
            upload = UploadFile(
                filename=filename.decode("utf-8"),
                content_type=self._headers.get("content-type", "application/octet-stream"),
                content=bytes(self._body),
            )
            self.files.setdefault(field_name, []).append(upload)
        else:
            self.data.setdefault(field_name, []).append(self._body.decode("utf-8", errors="replace"))
