"""Core building blocks shared by the runtime: errors and settings."""

from .errors import (
    AmbiguousRelationshipError,
    ConfigurationError,
    ObjectNotFoundError,
    QueryTooComplicatedError,
    SalesforceError,
    SObjectError,
    UndefinedFieldError,
    UnmappedTypeError,
)
from .settings import ConnectionSettings, load_settings

__all__ = [
    "AmbiguousRelationshipError",
    "ConfigurationError",
    "ConnectionSettings",
    "ObjectNotFoundError",
    "QueryTooComplicatedError",
    "SObjectError",
    "SalesforceError",
    "UndefinedFieldError",
    "UnmappedTypeError",
    "load_settings",
]
