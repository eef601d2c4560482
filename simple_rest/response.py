"""Response - the result value returned by every RestClient call."""

from __future__ import annotations

from typing import Any, TypeVar

from simple_rest.codec import JsonCodec
from simple_rest.headers import ALLOW, HeaderMap

T = TypeVar("T")


class Response:
    """Status code, headers and raw body of one call.

    The body is kept as the raw text the server returned; use get_object,
    get_object_list or get_for_type to deserialize it with the bound codec
    (or an explicit codec override).

    Two responses are equal when their status codes and bodies are equal.
    Headers and codec are not part of equality.
    """

    __slots__ = ("_body", "_status_code", "_headers", "_codec")

    def __init__(
        self,
        body: str | None,
        status_code: int,
        headers: Any = None,
        codec: JsonCodec | None = None,
    ) -> None:
        self._body = body
        self._status_code = status_code
        self._headers = headers if isinstance(headers, HeaderMap) else HeaderMap(headers)
        self._codec = codec or JsonCodec()

    @property
    def body(self) -> str | None:
        """The raw response body ("" when the server sent none)."""
        return self._body

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def headers(self) -> HeaderMap:
        return self._headers

    @property
    def codec(self) -> JsonCodec:
        return self._codec

    def get_header(self, name: str) -> str | None:
        """Return the first value of a header (case-insensitive), or None."""
        return self._headers.first(name)

    @property
    def allowed_methods(self) -> list[str]:
        """Methods listed in the Allow header (as returned for OPTIONS)."""
        allow = self.get_header(ALLOW)
        if not allow:
            return []
        return [method.strip() for method in allow.split(",") if method.strip()]

    def get_object(self, target: type[T], codec: JsonCodec | None = None) -> T:
        """Deserialize the body as a single value of target.

        Raises:
            DeserializationError: If the body does not match target.
        """
        return (codec or self._codec).deserialize(self._body, target)

    def get_object_list(self, element_type: type[T], codec: JsonCodec | None = None) -> list[T]:
        """Deserialize the body as a list of element_type."""
        return (codec or self._codec).deserialize(self._body, list[element_type])

    def get_for_type(self, type_descriptor: Any, codec: JsonCodec | None = None) -> Any:
        """Deserialize the body into any typing form, e.g. dict[str, list[str]]."""
        return (codec or self._codec).deserialize(self._body, type_descriptor)

    def json(self) -> Any:
        """Deserialize the body into plain dicts, lists and scalars."""
        return self._codec.deserialize(self._body)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Response):
            return NotImplemented
        return self._status_code == other._status_code and self._body == other._body

    def __hash__(self) -> int:
        return hash((self._status_code, self._body))

    def __str__(self) -> str:
        return f"{self._status_code}, {self._body}"

    def __repr__(self) -> str:
        return f"Response(status_code={self._status_code}, body={self._body!r})"
