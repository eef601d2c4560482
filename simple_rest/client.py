"""RestClient - issues HTTP calls and wraps the outcome in a Response.

Each call opens its own connection through the client's TrustPolicy, sends
the request, reads status, headers and body, and closes the connection on
every exit path. Nothing is pooled, retried or cached.
"""

from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Any

import httpx

from simple_rest.codec import JsonCodec
from simple_rest.errors import RestError, SerializationError, StatusError, TransportError
from simple_rest.headers import ACCEPT, CONTENT_TYPE, HeaderMap
from simple_rest.models import (
    DEFAULT_MEDIA_TYPE,
    ClientConfig,
    RequestDescriptor,
    RequestMethod,
    RequestOptions,
)
from simple_rest.response import Response
from simple_rest.trust import TrustPolicy

logger = logging.getLogger(__name__)

# Status codes at or above this are call failures
ERROR_STATUS_THRESHOLD = 400

_DEFAULT_OPTIONS = RequestOptions()


class RestClient:
    """Synchronous HTTP client with one method per verb.

    Usage:
        client = RestClient()
        response = client.get("https://example.com/companies/1")
        company = response.get_object(Company)

        client.post(url, Company(name="ACME"),
                    RequestOptions(headers=basic_auth_header("user", "pw")))

    The client holds no per-call state; one instance may be shared between
    threads. Calls block until they complete or fail and take no deadline.
    """

    def __init__(
        self,
        trust_all: bool | None = None,
        codec: JsonCodec | None = None,
        config: ClientConfig | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            trust_all: Accept any server certificate. Overrides config.trust_all.
                       Only for test/dev endpoints with self-signed certificates.
            codec: JSON codec for payloads and responses. Default JsonCodec().
            config: Client-wide settings. Default ClientConfig().

        Raises:
            TrustConfigurationError: If the TLS trust material cannot be built.
        """
        self._config = config or ClientConfig()
        if trust_all is not None and trust_all != self._config.trust_all:
            self._config = self._config.model_copy(update={"trust_all": trust_all})
        self._codec = codec or JsonCodec()
        self._trust_policy = TrustPolicy.resolve(self._config.trust_all)

    @classmethod
    def from_config(cls, config_path: Path | str, codec: JsonCodec | None = None) -> RestClient:
        """Create a client from a YAML config file.

        Raises:
            ConfigError: If the file is missing or invalid.
            TrustConfigurationError: If the TLS trust material cannot be built.
        """
        from simple_rest.config_loader import load_client_config

        return cls(codec=codec, config=load_client_config(Path(config_path)))

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def codec(self) -> JsonCodec:
        return self._codec

    @property
    def trust_policy(self) -> TrustPolicy:
        return self._trust_policy

    # --- Verbs ---

    def get(
        self,
        url: str,
        options: RequestOptions | None = None,
        *,
        payload: Any = None,
    ) -> Response:
        """GET a resource.

        A payload is discouraged by HTTP semantics but is sent like a POST
        body for servers that expect one.
        """
        return self.execute(RequestMethod.GET, url, payload, options)

    def post(self, url: str, payload: Any = None, options: RequestOptions | None = None) -> Response:
        return self.execute(RequestMethod.POST, url, payload, options)

    def put(self, url: str, payload: Any = None, options: RequestOptions | None = None) -> Response:
        return self.execute(RequestMethod.PUT, url, payload, options)

    def delete(
        self,
        url: str,
        options: RequestOptions | None = None,
        *,
        payload: Any = None,
    ) -> Response:
        """DELETE a resource.

        Unlike the other verbs, a status >= 400 is returned as a Response
        by default (e.g. 404 for a resource that does not exist). Pass
        RequestOptions(raise_for_status=True) to raise instead.
        """
        return self.execute(RequestMethod.DELETE, url, payload, options)

    def head(self, url: str, options: RequestOptions | None = None) -> Response:
        """HEAD a resource. The response body is always empty."""
        return self.execute(RequestMethod.HEAD, url, None, options)

    def options(self, url: str, options: RequestOptions | None = None) -> Response:
        """OPTIONS a resource. See Response.allowed_methods for the Allow header."""
        return self.execute(RequestMethod.OPTIONS, url, None, options)

    # --- Generic execution ---

    def execute(
        self,
        method: RequestMethod | str,
        url: str,
        payload: Any = None,
        options: RequestOptions | None = None,
    ) -> Response:
        """Execute one call and classify the outcome.

        Args:
            method: HTTP verb.
            url: Absolute target URL.
            payload: Request body: str/bytes sent verbatim, anything else
                     serialized as JSON. None means no body.
            options: Per-call headers, accept type and status handling.

        Returns:
            Response with body, status code and headers.

        Raises:
            TransportError: If the call fails before a response is read.
            StatusError: If status >= 400 and status raising is enabled.
            SerializationError: If the payload cannot be serialized.
            TypeError: If options is not a RequestOptions.
        """
        if options is not None and not isinstance(options, RequestOptions):
            raise TypeError(f"options must be RequestOptions, got {type(options).__name__}")
        options = options or _DEFAULT_OPTIONS
        descriptor = self.build_descriptor(method, url, payload, options)
        http_response = self._exchange(descriptor)

        body = self._read_body(descriptor, http_response)
        response = self._convert_response(http_response, body)

        if self._should_raise(descriptor.method, options) and (
            response.status_code >= ERROR_STATUS_THRESHOLD
        ):
            raise StatusError(descriptor.method.value, url, response.status_code, body)
        return response

    def build_descriptor(
        self,
        method: RequestMethod | str,
        url: str,
        payload: Any = None,
        options: RequestOptions | None = None,
    ) -> RequestDescriptor:
        """Build the descriptor for a call, including the effective headers.

        Header precedence (later wins): Accept default, client-wide config
        headers, Content-Type default (only with a payload), caller headers.
        """
        options = options or _DEFAULT_OPTIONS
        method = RequestMethod(method.upper() if isinstance(method, str) else method)
        accept = options.accept or self._config.accept or DEFAULT_MEDIA_TYPE

        headers = HeaderMap()
        headers.set(ACCEPT, accept)
        for name, value in self._config.headers.items():
            headers.set(name, value)

        descriptor = RequestDescriptor(method=method, url=url, accept=accept, payload=payload)
        if payload is not None and not descriptor.has_payload:
            logger.debug("Ignoring payload for %s %s: %s never sends a body", method.value, url, method.value)
            descriptor.payload = None

        if descriptor.has_payload and CONTENT_TYPE not in headers:
            headers.set(CONTENT_TYPE, DEFAULT_MEDIA_TYPE)

        for name, value in options.headers.items():
            headers.set(name, value)

        descriptor.headers = headers
        return descriptor

    def _should_raise(self, method: RequestMethod, options: RequestOptions) -> bool:
        if options.raise_for_status is not None:
            return options.raise_for_status
        return method is not RequestMethod.DELETE

    def _exchange(self, descriptor: RequestDescriptor) -> httpx.Response:
        """Send the request on a fresh connection and read the full response.

        The connection is closed before returning, on success or failure.

        Raises:
            TransportError: On connection, write or read failures.
            SerializationError: If the payload cannot be serialized.
        """
        method = descriptor.method.value
        try:
            content = self._codec.serialize(descriptor.payload) if descriptor.has_payload else None
        except SerializationError as e:
            raise SerializationError(f"Failed to call {method} {descriptor.url}: {e.message}", e.cause) from e
        if isinstance(content, str):
            content = content.encode("utf-8")

        logger.debug("%s %s", method, descriptor.url)
        try:
            with self._trust_policy.open_connection(self._config.follow_redirects) as connection:
                http_response = connection.request(
                    method,
                    descriptor.url,
                    headers=list(descriptor.headers.items_flat()),
                    content=content,
                )
        except httpx.InvalidURL as e:
            raise TransportError(f"Failed to call {method} {descriptor.url}: invalid URL", e) from e
        except httpx.RequestError as e:
            raise TransportError(f"Failed to call {method} {descriptor.url}: {e}", e) from e
        except httpx.StreamError as e:
            raise TransportError(f"Failed to read response of {method} {descriptor.url}", e) from e
        except UnicodeEncodeError as e:
            # Non-ASCII in header names or values, or in the URL path
            raise TransportError(
                f"Failed to call {method} {descriptor.url}: non-ASCII characters in request "
                f"({e.object[e.start:e.end]!r} at position {e.start})",
                e,
            ) from e

        logger.debug("%s %s -> %d", method, descriptor.url, http_response.status_code)
        return http_response

    def _read_body(self, descriptor: RequestDescriptor, response: httpx.Response) -> str:
        """Decode the body, or "" when there is none.

        Success and error content arrive on the same stream, so a 4xx/5xx
        body is read the same way as a 2xx body. HEAD never has a body; for
        DELETE an empty body (Content-Length: 0) is normal.
        """
        if descriptor.method is RequestMethod.HEAD or not response.content:
            return ""
        try:
            return response.text
        except (LookupError, UnicodeDecodeError) as e:
            raise TransportError(
                f"Failed to decode response body of {descriptor.method.value} {descriptor.url}", e
            ) from e

    def _convert_response(self, response: httpx.Response, body: str) -> Response:
        encoding = response.headers.encoding
        return Response(
            body=body,
            status_code=response.status_code,
            headers=HeaderMap(
                (name.decode(encoding), value.decode(encoding))
                for name, value in response.headers.raw
            ),
            codec=self._codec,
        )

    # --- Content helpers ---

    def get_content_as_bytes(self, url: str, options: RequestOptions | None = None) -> bytes:
        """GET a resource as raw bytes.

        Raises:
            StatusError: If the status is anything other than 200.
            TransportError: If the call fails.
        """
        options = options or _DEFAULT_OPTIONS
        descriptor = self.build_descriptor(RequestMethod.GET, url, None, options)
        # Binary content: do not ask for JSON unless the caller did
        if options.accept is None and ACCEPT not in HeaderMap(options.headers):
            descriptor.headers.remove(ACCEPT)
        http_response = self._exchange(descriptor)
        if http_response.status_code != 200:
            raise StatusError("GET", url, http_response.status_code, self._read_body(descriptor, http_response))
        return http_response.content

    def get_content_as_base64(self, url: str, options: RequestOptions | None = None) -> str:
        return base64.b64encode(self.get_content_as_bytes(url, options)).decode("ascii")

    def url_exists_and_is_image(self, url: str) -> bool:
        """True if GET url answers 200 with an image/* content type.

        Any failure resolves to False rather than raising.
        """
        try:
            descriptor = self.build_descriptor(
                RequestMethod.GET, url, options=RequestOptions(accept="*/*")
            )
            http_response = self._exchange(descriptor)
        except RestError as e:
            logger.debug("Image probe failed for %s: %s", url, e)
            return False
        content_type = http_response.headers.get(CONTENT_TYPE)
        return http_response.status_code == 200 and content_type is not None and (
            content_type.startswith("image")
        )

    def __repr__(self) -> str:
        return f"RestClient(trust_all={self._config.trust_all}, codec={self._codec!r})"
