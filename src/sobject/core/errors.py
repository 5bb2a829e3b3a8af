"""
Error types for sobject schema lookups, type mapping and remote calls.
"""

from __future__ import annotations

import json
from typing import Any


class SObjectError(Exception):
    """Base exception for all sobject errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(SObjectError):
    """
    Raised when a connection cannot be set up.

    Examples:
    - Missing instance URL
    - Invalid field batch size
    - No default connection configured
    """

    pass


class SalesforceError(SObjectError):
    """
    Raised when the remote API reports a failure.

    Carries the server's error code and message, plus an optional context
    string such as ``<Opportunity:0065000000Abc>`` naming the record involved.
    """

    default_code = "UNKNOWN_ERROR"

    def __init__(self, message: str, error_code: str | None = None, context: str | None = None):
        self.error_code = error_code or self.default_code
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        text = f"{self.error_code}: {self.message}"
        if self.context:
            text += f" {self.context}"
        return text


class QueryTooComplicatedError(SalesforceError):
    """Raised when a record has too many fields to fetch in a single call."""

    default_code = "QUERY_TOO_COMPLICATED"


class ObjectNotFoundError(SalesforceError):
    """Raised when a targeted lookup returns no record."""

    default_code = "NOT_FOUND"


class UndefinedFieldError(SObjectError, AttributeError):
    """
    Raised when an accessor or schema lookup names a field the record type
    does not have.
    """

    pass


class UnmappedTypeError(SObjectError, LookupError):
    """Raised when no record class is registered for a type name."""

    pass


class AmbiguousRelationshipError(SObjectError):
    """
    Raised when an accessor name matches both the ``<name>id__c`` and the
    ``<name>_lookup__c`` custom relationship conventions.
    """

    pass


# =============================================================================
# Error Classification
# =============================================================================

_ERROR_CLASSES: dict[str, type[SalesforceError]] = {
    "QUERY_TOO_COMPLICATED": QueryTooComplicatedError,
    "NOT_FOUND": ObjectNotFoundError,
}


def error_class_for(error_code: str | None) -> type[SalesforceError]:
    """Return the error class for a server error code."""
    if not error_code:
        return SalesforceError
    return _ERROR_CLASSES.get(error_code, SalesforceError)


def build_error(message: str, error_code: str | None, context: str | None = None) -> SalesforceError:
    """Instantiate the classified error for a server error code."""
    return error_class_for(error_code)(message, error_code, context)


def parse_error_body(body: Any) -> dict[str, str]:
    """Extract the first ``{errorCode, message}`` entry from an error response.

    The API returns a list of error objects; some endpoints return a single
    object instead. Raw text bodies are accepted and reported verbatim.
    """
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body) if body else None
        except ValueError:
            text = body.decode(errors="replace") if isinstance(body, bytes) else body
            return {"errorCode": SalesforceError.default_code, "message": text}

    if isinstance(body, list):
        body = body[0] if body else None

    if not isinstance(body, dict):
        return {"errorCode": SalesforceError.default_code, "message": "Unknown error"}

    return {
        "errorCode": str(body.get("errorCode") or SalesforceError.default_code),
        "message": str(body.get("message") or ""),
    }
