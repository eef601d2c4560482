"""JSON codec - converts payloads to the wire format and bodies back to values.

Serialization goes through pydantic_core so pydantic models, dataclasses and
plain containers are all handled the same way. Deserialization uses a
pydantic TypeAdapter for the requested target type, which covers single
classes, lists of classes and arbitrary nested typing forms such as
``dict[str, list[str]]``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, get_origin

import pydantic_core
from pydantic import TypeAdapter, ValidationError

from simple_rest.errors import DeserializationError, SerializationError


@lru_cache(maxsize=256)
def _adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


class JsonCodec:
    """Immutable JSON codec shared by a client and the responses it returns."""

    __slots__ = ("_by_alias", "_exclude_none")

    def __init__(self, by_alias: bool = False, exclude_none: bool = False) -> None:
        self._by_alias = by_alias
        self._exclude_none = exclude_none

    @property
    def by_alias(self) -> bool:
        return self._by_alias

    @property
    def exclude_none(self) -> bool:
        return self._exclude_none

    def serialize(self, payload: Any) -> str | bytes:
        """Convert a payload to its wire form.

        str and bytes are sent verbatim; anything else is encoded as JSON.

        Raises:
            SerializationError: If the payload cannot be encoded.
        """
        if isinstance(payload, (str, bytes)):
            return payload
        try:
            return pydantic_core.to_json(
                payload, by_alias=self._by_alias, exclude_none=self._exclude_none
            ).decode("utf-8")
        except (pydantic_core.PydanticSerializationError, TypeError, ValueError) as e:
            raise SerializationError(
                f"Failed to serialize payload of type {type(payload).__name__}", e
            ) from e

    def deserialize(self, text: str | bytes | None, target: Any = Any) -> Any:
        """Parse a JSON body into target (a class or any typing form).

        Raises:
            DeserializationError: If the body is not valid JSON for target.
        """
        if text is None:
            raise DeserializationError("Cannot deserialize an absent body")
        try:
            adapter = _adapter(target)
        except TypeError:
            # unhashable typing forms skip the cache
            adapter = TypeAdapter(target)
        try:
            return adapter.validate_json(text)
        except ValidationError as e:
            raise DeserializationError(
                f"Failed to deserialize body as {_type_name(target)}: {e}", e
            ) from e

    def __repr__(self) -> str:
        return f"JsonCodec(by_alias={self._by_alias}, exclude_none={self._exclude_none})"


def _type_name(target: Any) -> str:
    if get_origin(target) is None and hasattr(target, "__name__"):
        return target.__name__
    return repr(target)
