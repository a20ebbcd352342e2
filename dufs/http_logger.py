"""HTTP access log lines built from a ``$variable`` format string."""

from __future__ import annotations

import base64
import binascii
import enum
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from urllib.parse import unquote

DEFAULT_LOG_FORMAT = '$remote_addr "$request" $status'

_logger = logging.getLogger("dufs")
_DIGEST_USER = re.compile(r'username\s*=\s*(?:"([^"]*)"|([^,\s]+))')


class _Kind(enum.Enum):
    VARIABLE = "variable"
    HEADER = "header"
    LITERAL = "literal"


@dataclass(frozen=True)
class _Element:
    kind: _Kind
    value: str


def _parse_elements(text: str) -> tuple[_Element, ...]:
    elements: list[_Element] = []
    is_var = False
    cache = ""
    for c in text + " ":
        if c == "$":
            if cache:
                elements.append(_Element(_Kind.LITERAL, cache))
            cache = ""
            is_var = True
        elif is_var and not (c.isalnum() or c == "_"):
            if cache.startswith("$http_"):
                name = cache[len("$http_"):].replace("_", "-")
                elements.append(_Element(_Kind.HEADER, name))
            elif cache.startswith("$"):
                elements.append(_Element(_Kind.VARIABLE, cache[1:]))
            cache = ""
            is_var = False
        cache += c
    cache = cache.strip()
    if cache:
        elements.append(_Element(_Kind.LITERAL, cache))
    return tuple(elements)


def _header(headers: Mapping[str, str], name: str) -> str | None:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def _auth_user(authorization: str) -> str | None:
    scheme, _, rest = authorization.strip().partition(" ")
    scheme = scheme.lower()
    if scheme == "basic":
        try:
            decoded = base64.b64decode(rest.strip(), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return None
        user, sep, _ = decoded.partition(":")
        return user if sep else None
    if scheme == "digest":
        match = _DIGEST_USER.search(rest)
        if match:
            return match.group(1) if match.group(1) is not None else match.group(2)
    return None


def _decode_uri(uri: str) -> str:
    try:
        return unquote(uri, errors="strict")
    except UnicodeDecodeError:
        return uri


@dataclass(frozen=True)
class HttpLogger:
    """A compiled access-log format."""

    elements: tuple[_Element, ...] = field(
        default_factory=lambda: _parse_elements(DEFAULT_LOG_FORMAT)
    )

    @classmethod
    def parse(cls, text: str) -> "HttpLogger":
        """Compile a format string; an empty string disables logging."""
        return cls(_parse_elements(text))

    def data(self, method: str, uri: str, headers: Mapping[str, str]) -> dict[str, str]:
        """Collect the request values this format refers to."""
        values: dict[str, str] = {}
        for element in self.elements:
            if element.kind is _Kind.VARIABLE:
                if element.value == "request":
                    values[element.value] = f"{method} {_decode_uri(uri)}"
                elif element.value == "remote_user":
                    authorization = _header(headers, "authorization")
                    user = _auth_user(authorization) if authorization else None
                    if user is not None:
                        values[element.value] = user
            elif element.kind is _Kind.HEADER:
                value = _header(headers, element.value)
                if value is not None:
                    values[element.value] = value
        return values

    def render(self, data: Mapping[str, str]) -> str | None:
        """Build the log line, or ``None`` when the format is empty."""
        if not self.elements:
            return None
        return "".join(
            element.value if element.kind is _Kind.LITERAL else data.get(element.value, "-")
            for element in self.elements
        )

    def log(self, data: Mapping[str, str], err: str | None = None) -> None:
        """Emit the line at INFO, or at ERROR with ``err`` appended."""
        output = self.render(data)
        if output is None:
            return
        if err is not None:
            _logger.error("%s %s", output, err)
        else:
            _logger.info("%s", output)