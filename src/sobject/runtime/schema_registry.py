"""
Per-type schema registry.

Fetches the describe payload for a record type on first use and keeps it
for the life of the registry. Descriptions are never invalidated. A canned
description can be registered up front, in which case no remote call is made.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from sobject.core.errors import ConfigurationError, UndefinedFieldError
from sobject.specs.schema import FieldDescriptor, SchemaDescription

logger = logging.getLogger(__name__)

# Returns the raw describe payload for a type name
DescribeLoader = Callable[[str], dict[str, Any]]


class SchemaRegistry:
    """
    Memoized schema descriptions, keyed by record type name.

    Initialization is compute-once per type: concurrent first calls for the
    same type wait on a per-type lock and share one describe fetch.
    """

    def __init__(self, loader: DescribeLoader | None = None):
        self._loader = loader
        self._descriptions: dict[str, SchemaDescription] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, type_name: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(type_name, threading.Lock())

    def register(self, description: SchemaDescription | dict[str, Any]) -> SchemaDescription:
        """Install a description without fetching it.

        Accepts either a SchemaDescription or a raw describe payload
        (which must carry ``name``).
        """
        if not isinstance(description, SchemaDescription):
            description = SchemaDescription.model_validate(description)
        self._descriptions[description.name] = description
        return description

    def is_loaded(self, type_name: str) -> bool:
        return type_name in self._descriptions

    def describe(self, type_name: str) -> SchemaDescription:
        """Return the schema for a type, fetching it on first use.

        Raises:
            SalesforceError: If the describe call fails
        """
        cached = self._descriptions.get(type_name)
        if cached is not None:
            return cached

        with self._lock_for(type_name):
            cached = self._descriptions.get(type_name)
            if cached is not None:
                return cached
            if self._loader is None:
                raise ConfigurationError(f"No schema registered for <{type_name}> and no loader to fetch it")

            logger.debug("Describing <%s>", type_name)
            payload = dict(self._loader(type_name))
            payload.setdefault("name", type_name)
            payload["fields"] = payload.get("fields") or []
            description = SchemaDescription.model_validate(payload)
            self._descriptions[type_name] = description
            return description

    # -------------------------------------------------------------------------
    # Field queries
    # -------------------------------------------------------------------------

    def field_metadata(self, type_name: str, field_name: str) -> FieldDescriptor | None:
        return self.describe(type_name).field(field_name)

    def field_exists(self, type_name: str, field_name: str) -> bool:
        return self.field_metadata(type_name, field_name) is not None

    def field_property(self, type_name: str, field_name: str, prop: str) -> Any:
        """Return one descriptor property of a field.

        Raises:
            UndefinedFieldError: If the type has no such field
        """
        descriptor = self.field_metadata(type_name, field_name)
        if descriptor is None:
            raise UndefinedFieldError(f"Field <{type_name}#{field_name.lower()}> doesn't exist.")
        return descriptor.get_property(prop)

    def field_type(self, type_name: str, field_name: str) -> str:
        return self.field_property(type_name, field_name, "type")

    def all_fields(self, type_name: str) -> list[str]:
        return self.describe(type_name).field_names()
