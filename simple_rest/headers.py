"""Common header names, authorization helpers and a case-insensitive header map."""

from __future__ import annotations

import base64
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

# Methods the server supports for a resource (GET, PUT, POST etc.)
ALLOW = "Allow"
# Desired response type
ACCEPT = "Accept"
AUTHORIZATION = "Authorization"
CONTENT_LENGTH = "Content-Length"
CONTENT_TYPE = "Content-Type"


def basic_auth(username: str, password: str) -> str:
    """Build an Authorization value for basic authentication."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def basic_auth_header(username: str, password: str) -> dict[str, str]:
    return {AUTHORIZATION: basic_auth(username, password)}


def bearer(token: str) -> str:
    """Build an Authorization value for a bearer token (e.g. a JSON web token)."""
    return f"Bearer {token}"


def bearer_header(token: str) -> dict[str, str]:
    return {AUTHORIZATION: bearer(token)}


class HeaderMap(Mapping[str, list[str]]):
    """Ordered header multimap with case-insensitive lookup.

    Names keep the case they were first added with (that is what goes on the
    wire); lookups go through a lower-cased index. A header may repeat, so
    every name maps to a list of values.

    Accepts None, a mapping of name to a value or a sequence of values, or an
    iterable of (name, value) pairs.
    """

    def __init__(self, headers: Any = None) -> None:
        self._names: dict[str, str] = {}  # lower-cased name -> original name
        self._values: dict[str, list[str]] = {}  # lower-cased name -> values
        if headers is None:
            return
        if isinstance(headers, Mapping):
            items: Iterable[tuple[str, Any]] = headers.items()
        else:
            items = headers
        for name, value in items:
            if isinstance(value, (list, tuple)):
                for item in value:
                    self.add(name, item)
            else:
                self.add(name, value)

    def add(self, name: str, value: str) -> None:
        """Append a value, keeping existing values for the name."""
        key = name.lower()
        if key not in self._names:
            self._names[key] = name
            self._values[key] = []
        self._values[key].append(str(value))

    def set(self, name: str, value: str) -> None:
        """Replace every value for the name. The caller's spelling wins."""
        key = name.lower()
        self._names[key] = name
        self._values[key] = [str(value)]

    def remove(self, name: str) -> None:
        key = name.lower()
        self._names.pop(key, None)
        self._values.pop(key, None)

    def first(self, name: str) -> str | None:
        """Return the first value for the name, or None if absent."""
        values = self._values.get(name.lower())
        if not values:
            return None
        return values[0]

    def get_all(self, name: str) -> list[str]:
        return list(self._values.get(name.lower(), []))

    def items_flat(self) -> Iterator[tuple[str, str]]:
        """Yield (name, value) pairs in insertion order."""
        for key, name in self._names.items():
            for value in self._values[key]:
                yield name, value

    def copy(self) -> HeaderMap:
        return HeaderMap(list(self.items_flat()))

    def __getitem__(self, name: str) -> list[str]:
        return list(self._values[name.lower()])

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._names.values())

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"HeaderMap({dict(self.items())!r})"
