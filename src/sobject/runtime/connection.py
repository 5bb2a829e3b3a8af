"""
Connection: settings, authorization, transport and schema cache in one place.

A process-wide default connection is used by record classes and queries
unless one is passed explicitly:

    from sobject import configure

    configure()                          # settings from SOBJECT_* env vars
    configure(ConnectionSettings(...))   # explicit settings
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from sobject.core.errors import ConfigurationError, SalesforceError, build_error, parse_error_body
from sobject.core.settings import ConnectionSettings, load_settings
from sobject.runtime.authorization import Authorization, TokenAuthorization
from sobject.runtime.schema_registry import SchemaRegistry
from sobject.runtime.transport import Response, Transport

logger = logging.getLogger(__name__)


class Connection:
    """Everything needed to talk to one API instance."""

    def __init__(
        self,
        settings: ConnectionSettings,
        authorization: Authorization | None = None,
        transport: Transport | None = None,
    ):
        self.settings = settings
        self.authorization = authorization or TokenAuthorization(settings)
        self.transport = transport or Transport(timeout=settings.timeout)
        self.schemas = SchemaRegistry(loader=self._fetch_description)

    @classmethod
    def from_settings(
        cls,
        settings: ConnectionSettings,
        client: httpx.Client | None = None,
    ) -> Connection:
        return cls(settings, transport=Transport(timeout=settings.timeout, client=client))

    def close(self) -> None:
        self.transport.close()

    # -------------------------------------------------------------------------
    # URLs and headers
    # -------------------------------------------------------------------------

    @property
    def service_url(self) -> str:
        return self.authorization.service_url

    @property
    def instance_url(self) -> str:
        return self.authorization.instance_url

    def headers(self) -> dict[str, str]:
        return self.authorization.headers()

    def sobject_url(self, type_name: str, record_id: str | None = None) -> str:
        url = f"{self.service_url}/sobjects/{type_name}"
        return f"{url}/{record_id}" if record_id else url

    def absolute_url(self, path: str) -> str:
        """Resolve a server-relative resource path against the instance URL."""
        if path.startswith(("http://", "https://")):
            return path
        return self.instance_url + path

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------

    def request(self, method: str, url: str, **kwargs: Any) -> Response:
        return self.transport.request(method, url, headers=self.headers(), **kwargs)

    def get_json(self, url: str, context: str, params: dict[str, Any] | None = None) -> Any:
        """GET a URL and return its parsed body.

        Raises:
            SalesforceError: Classified by the server error code on a non-2xx response
        """
        response = self.request("GET", url, params=params)
        if not response.success:
            raise self.error_for(response, context)
        return response.json()

    @staticmethod
    def error_for(response: Response, context: str | None = None) -> SalesforceError:
        error = parse_error_body(response.text)
        return build_error(error["message"], error["errorCode"], context)

    def _fetch_description(self, type_name: str) -> dict[str, Any]:
        return self.get_json(f"{self.sobject_url(type_name)}/describe", f"<{type_name}>")


# =============================================================================
# Process default
# =============================================================================

_default: Connection | None = None


def configure(
    settings: ConnectionSettings | None = None,
    client: httpx.Client | None = None,
) -> Connection:
    """Build and install the default connection.

    Settings are loaded from the environment when not given.
    """
    global _default
    connection = Connection.from_settings(settings or load_settings(), client=client)
    _default = connection
    logger.info("Configured connection to %s", connection.instance_url)
    return connection


def set_connection(connection: Connection | None) -> None:
    """Install (or clear, with None) the default connection."""
    global _default
    _default = connection


def get_connection() -> Connection:
    """Return the default connection.

    Raises:
        ConfigurationError: If configure() has not been called
    """
    if _default is None:
        raise ConfigurationError("No connection configured. Call sobject.configure() first")
    return _default
