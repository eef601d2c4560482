"""TLS trust policy - resolved once per client, used for every connection it opens."""

from __future__ import annotations

import logging
import ssl

import certifi
import httpx

from simple_rest.errors import TrustConfigurationError

logger = logging.getLogger(__name__)


class TrustPolicy:
    """Resolved TLS trust material plus the factory for single-use connections.

    Usage:
        policy = TrustPolicy.resolve()             # OS trust store + certifi bundle
        policy = TrustPolicy.resolve(trust_all=True)  # test/dev only
        with policy.open_connection() as conn:
            conn.get("https://example.com")
    """

    __slots__ = ("_trust_all", "_ssl_context")

    def __init__(self, ssl_context: ssl.SSLContext, trust_all: bool = False) -> None:
        self._ssl_context = ssl_context
        self._trust_all = trust_all

    @classmethod
    def resolve(cls, trust_all: bool = False) -> TrustPolicy:
        """Build the SSL context for the chosen trust mode.

        Args:
            trust_all: Accept any certificate chain and skip hostname checks.
                       Only meant for trusted test/dev environments with
                       self-signed endpoints.

        Raises:
            TrustConfigurationError: If the SSL context cannot be built.
        """
        try:
            if trust_all:
                context = ssl.create_default_context()
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
                logger.warning(
                    "Certificate validation is disabled for this client (trust_all=True)"
                )
            else:
                # Platform default verify paths, then the bundled Mozilla CA set
                context = ssl.create_default_context()
                context.load_verify_locations(cafile=certifi.where())
        except (ssl.SSLError, OSError, ValueError) as e:
            mode = "trust-all" if trust_all else "platform"
            raise TrustConfigurationError(
                f"Failed to create SSL context for {mode} trust policy", e
            ) from e
        return cls(context, trust_all=trust_all)

    @property
    def trust_all(self) -> bool:
        return self._trust_all

    @property
    def ssl_context(self) -> ssl.SSLContext:
        return self._ssl_context

    def open_connection(self, follow_redirects: bool = True) -> httpx.Client:
        """Open a fresh connection for exactly one call.

        The caller owns the returned client and must close it (use ``with``).
        No timeout is applied: a call runs until it completes or fails.
        """
        return httpx.Client(
            verify=self._ssl_context,
            timeout=None,
            follow_redirects=follow_redirects,
            http1=True,
            http2=False,
        )

    def __repr__(self) -> str:
        return f"TrustPolicy(trust_all={self._trust_all})"
