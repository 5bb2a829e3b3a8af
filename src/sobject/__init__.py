"""
sobject - dynamic records over a schema-described REST API.

Record types are discovered at runtime from the server's describe call;
records are fetched, queried page by page, and saved back through a
single configured connection.
"""

from __future__ import annotations

from ._version import get_version as _get_version
from .core.errors import (
    AmbiguousRelationshipError,
    ConfigurationError,
    ObjectNotFoundError,
    QueryTooComplicatedError,
    SalesforceError,
    SObjectError,
    UndefinedFieldError,
    UnmappedTypeError,
)
from .core.settings import ConnectionSettings, load_settings
from .runtime.connection import Connection, configure, get_connection, set_connection
from .runtime.logging import setup_logging
from .runtime.query import Query
from .runtime.record import SObject
from .runtime.types import get_type_registry, register_type

__version__ = _get_version()

__all__ = [
    "__version__",
    "AmbiguousRelationshipError",
    "ConfigurationError",
    "Connection",
    "ConnectionSettings",
    "ObjectNotFoundError",
    "Query",
    "QueryTooComplicatedError",
    "SObject",
    "SObjectError",
    "SalesforceError",
    "UndefinedFieldError",
    "UnmappedTypeError",
    "configure",
    "get_connection",
    "get_type_registry",
    "load_settings",
    "register_type",
    "set_connection",
    "setup_logging",
]
