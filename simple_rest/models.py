"""Data models for simple-rest.

All models use Pydantic v2.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from simple_rest.headers import HeaderMap


class RequestMethod(str, Enum):
    """Supported HTTP verbs."""

    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class MediaType(str, Enum):
    """Media types for Accept and Content-Type headers."""

    APPLICATION_JSON = "application/json"
    APPLICATION_XML = "application/xml"


DEFAULT_MEDIA_TYPE = MediaType.APPLICATION_JSON.value

# Verbs that never write a request body
BODYLESS_METHODS = frozenset({RequestMethod.HEAD, RequestMethod.OPTIONS})


class RequestOptions(BaseModel):
    """Optional settings for a single call.

    Fields left at None fall back to the client or verb default.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    headers: dict[str, str] = Field(
        default_factory=dict, description="Header overrides (caller wins on conflicts)"
    )
    accept: str | None = Field(
        default=None, description="Accept header; client default (application/json) if None"
    )
    raise_for_status: bool | None = Field(
        default=None,
        description="Raise StatusError on status >= 400; verb default if None",
    )


class RequestDescriptor(BaseModel):
    """One outbound call, before it is executed.

    headers holds the effective headers in wire order (case-insensitive lookup).
    payload is None when there is no request body.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    method: RequestMethod = Field(description="HTTP verb")
    url: str = Field(description="Absolute target URL")
    headers: HeaderMap = Field(default_factory=HeaderMap, description="Effective headers")
    accept: str = Field(default=DEFAULT_MEDIA_TYPE, description="Accept media type")
    payload: Any = Field(default=None, description="Raw str/bytes or a value to serialize")

    @property
    def has_payload(self) -> bool:
        return self.payload is not None and self.method not in BODYLESS_METHODS


class ClientConfig(BaseModel):
    """Settings fixed when a RestClient is created."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    trust_all: bool = Field(
        default=False,
        description="Accept any server certificate. Only for test/dev against self-signed endpoints",
    )
    accept: str = Field(default=DEFAULT_MEDIA_TYPE, description="Default Accept header")
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Headers sent on every call (supports ${ENV_VAR} substitution)",
    )
    follow_redirects: bool = Field(default=True, description="Follow redirects")

    @field_validator("accept")
    @classmethod
    def validate_accept(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("accept must not be empty")
        return v
