"""
Authorization providers.

The runtime only needs three facts from an authorization provider: the
instance URL, the versioned service URL, and the headers to send with each
request. How the access token was obtained is outside its concern.
"""

from __future__ import annotations

from typing import Protocol

from sobject.core.settings import ConnectionSettings


class Authorization(Protocol):
    """Supplies base URLs and request headers."""

    @property
    def instance_url(self) -> str: ...

    @property
    def service_url(self) -> str: ...

    def headers(self) -> dict[str, str]: ...


class TokenAuthorization:
    """Bearer-token authorization built from connection settings."""

    def __init__(self, settings: ConnectionSettings):
        self._settings = settings

    @property
    def instance_url(self) -> str:
        return self._settings.instance_url

    @property
    def service_url(self) -> str:
        return self._settings.service_url

    def headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self._settings.access_token:
            headers["Authorization"] = f"Bearer {self._settings.access_token}"
        return headers
