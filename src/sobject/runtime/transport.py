"""
HTTP transport for the REST API.

Thin wrapper over ``httpx.Client``. Every call is a single blocking round
trip: there is no retry loop, and network errors (``httpx.HTTPError``)
propagate to the caller unchanged.
"""

from __future__ import annotations

import json as _json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from sobject.runtime.logging import log_with_context

logger = logging.getLogger(__name__)


@dataclass
class Response:
    """Status and body of one HTTP exchange."""

    status_code: int
    text: str = ""

    @property
    def success(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Parsed body, or None for an empty body (e.g. 204 No Content)."""
        if not self.text:
            return None
        return _json.loads(self.text)


class Transport:
    """Issue GET/POST/PATCH/DELETE requests against the API."""

    def __init__(self, timeout: float = 30.0, client: httpx.Client | None = None):
        self.client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> Transport:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Response:
        """Send one request and return its status and body."""
        logger.debug("%s %s params=%s", method.upper(), url, params or {})
        content = None if json is None else _json.dumps(json, default=str)
        resp = self.client.request(
            method.upper(),
            url,
            headers=headers,
            content=content,
            params=params or None,
        )
        if not 200 <= resp.status_code < 300:
            log_with_context(
                logger,
                logging.WARNING,
                f"{method.upper()} {url} returned {resp.status_code}",
                status=resp.status_code,
                body=resp.text[:200],
            )
        return Response(status_code=resp.status_code, text=resp.text)

    def get(self, url: str, **kwargs: Any) -> Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> Response:
        return self.request("POST", url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> Response:
        return self.request("PATCH", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> Response:
        return self.request("DELETE", url, **kwargs)
