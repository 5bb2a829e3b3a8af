"""
Connection settings for the sobject runtime.

Settings are read from environment variables:

    SOBJECT_INSTANCE_URL      → instance base URL (required)
    SOBJECT_ACCESS_TOKEN      → OAuth bearer token
    SOBJECT_API_VERSION       → REST API version (default v52.0)
    SOBJECT_TIMEOUT           → HTTP timeout in seconds (default 30)
    SOBJECT_FIELD_BATCH_SIZE  → fields per call when fetching wide records (default 20)

Usage:
    from sobject.core.settings import load_settings

    settings = load_settings()
    settings.service_url  # "https://na1.salesforce.com/services/data/v52.0"
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .errors import ConfigurationError

DEFAULT_API_VERSION = "v52.0"
DEFAULT_TIMEOUT = 30.0

# Known server limit on the number of fields a single-record GET can return
DEFAULT_FIELD_BATCH_SIZE = 20

ENV_PREFIX = "SOBJECT_"


@dataclass(frozen=True)
class ConnectionSettings:
    """Resolved settings for talking to one API instance."""

    instance_url: str
    access_token: str = ""
    api_version: str = DEFAULT_API_VERSION
    timeout: float = DEFAULT_TIMEOUT
    field_batch_size: int = DEFAULT_FIELD_BATCH_SIZE

    def __post_init__(self) -> None:
        if not self.instance_url:
            raise ConfigurationError(
                f"No instance URL configured. Set {ENV_PREFIX}INSTANCE_URL"
            )
        if self.field_batch_size < 1:
            raise ConfigurationError(
                f"Field batch size must be positive, got {self.field_batch_size}"
            )
        object.__setattr__(self, "instance_url", self.instance_url.rstrip("/"))

    @property
    def service_url(self) -> str:
        return f"{self.instance_url}/services/data/{self.api_version}"


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(f"{ENV_PREFIX}{name}", "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer, got '{raw}'") from None


def _float_setting(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(f"{ENV_PREFIX}{name}", "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be a number, got '{raw}'") from None


def load_settings(environ: Mapping[str, str] | None = None) -> ConnectionSettings:
    """Build ConnectionSettings from environment variables.

    Args:
        environ: Mapping to read from (defaults to ``os.environ``)

    Raises:
        ConfigurationError: If the instance URL is missing or a value is malformed
    """
    env = os.environ if environ is None else environ
    return ConnectionSettings(
        instance_url=env.get(f"{ENV_PREFIX}INSTANCE_URL", "").strip(),
        access_token=env.get(f"{ENV_PREFIX}ACCESS_TOKEN", "").strip(),
        api_version=env.get(f"{ENV_PREFIX}API_VERSION", "").strip() or DEFAULT_API_VERSION,
        timeout=_float_setting(env, "TIMEOUT", DEFAULT_TIMEOUT),
        field_batch_size=_int_setting(env, "FIELD_BATCH_SIZE", DEFAULT_FIELD_BATCH_SIZE),
    )
