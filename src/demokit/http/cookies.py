"""Cookie parsing and ``Set-Cookie`` serialization.

The read side feeds ``Request.cookies``; the write side is what
``demo_mode_cookie`` hands back for a response to attach.
"""

from dataclasses import dataclass
from urllib.parse import quote, unquote


def parse_cookies(*headers: str) -> dict[str, str]:
    """Parse one or more ``Cookie`` header values into a name-value dict.

    Values are percent-decoded and stripped of surrounding quotes. When a
    name repeats, the first occurrence wins, as browsers send the most
    specific cookie first.
    """
    cookies: dict[str, str] = {}
    for header in headers:
        for pair in header.split(";"):
            name, sep, value = pair.strip().partition("=")
            if not sep or not name:
                continue
            cookies.setdefault(name.strip(), unquote(value.strip().strip('"')))
    return cookies


@dataclass(frozen=True, slots=True)
class SetCookie:
    """A ``Set-Cookie`` directive.

    ``max_age=0`` with an empty value tells the browser to drop the cookie.
    """

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    @property
    def deletes(self) -> bool:
        """True when this directive removes the cookie."""
        return self.max_age == 0

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value."""
        parts = [f"{self.name}={quote(self.value, safe='')}"]
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.secure:
            parts.append("Secure")
        if self.httponly:
            parts.append("HttpOnly")
        if self.samesite:
            parts.append(f"SameSite={self.samesite.capitalize()}")
        return "; ".join(parts)

    def to_header(self) -> tuple[str, str]:
        """The ``("set-cookie", value)`` pair, ready for a response."""
        return ("set-cookie", self.to_header_value())
