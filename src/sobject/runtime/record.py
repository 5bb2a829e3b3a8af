"""
Record model for schema-described record types.

Each SObject subclass names a server record type. Field names, field types
and update permissions are not declared in Python; they come from the
type's describe payload through the connection's SchemaRegistry.

Construction applies coercion:
- ``date``/``datetime`` string values are parsed into UTC datetimes
- nested payloads carrying ``attributes.type`` become record instances
- field names are lowercased

Field access resolves in this order (see ``SObject.get``):
1. a schema field or a key already present in the field map
2. ``<name>id`` when it is a reference field → the related record
3. ``<name>id__c`` / ``<name>_lookup__c`` custom reference fields → the related record
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any, ClassVar

from dateutil import parser as date_parser

from sobject.core.errors import (
    AmbiguousRelationshipError,
    ObjectNotFoundError,
    QueryTooComplicatedError,
    UndefinedFieldError,
    UnmappedTypeError,
    build_error,
    parse_error_body,
)
from sobject.runtime.connection import Connection, get_connection
from sobject.runtime.query import Query, quote_literal
from sobject.runtime.transport import Response
from sobject.runtime.types import get_type_registry
from sobject.specs.schema import FieldKind, SchemaDescription

logger = logging.getLogger(__name__)

# Keys of a payload that must never be posted back
INVALID_FIELDS = frozenset({"attributes"})

SF_DATE_FORMAT = "%Y-%m-%d"
SF_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S.000+0000"

CUSTOM_SUFFIX = "__c"


# =============================================================================
# Date/Time Conversion
# =============================================================================


def parse_timestamp(value: str | date) -> datetime:
    """Parse a date or datetime into an aware UTC datetime.

    Values without a timezone are taken to be UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        parsed = date_parser.parse(value)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_date(value: str | date) -> str:
    return parse_timestamp(value).strftime(SF_DATE_FORMAT)


def format_datetime(value: str | date) -> str:
    return parse_timestamp(value).strftime(SF_DATETIME_FORMAT)


def _payload_id(payload: Mapping[str, Any]) -> str | None:
    for key, value in payload.items():
        if key.lower() == "id":
            return value
    return None


# =============================================================================
# Record Model
# =============================================================================


class SObject:
    """
    One record of a server-described type.

    Subclasses set ``type_name`` and are registered with ``register_type``
    so that nested payloads and reference fields can be resolved to them.

    Attribute access only reaches fields whose names do not collide with a
    class attribute; a server field such as ``Type`` needs ``get("type")``.
    """

    type_name: ClassVar[str] = ""
    connection: ClassVar[Connection | None] = None

    def __init__(
        self,
        fields: Mapping[str, Any] | None = None,
        *,
        connection: Connection | None = None,
        **kwargs: Any,
    ):
        payload = dict(fields or {})
        payload.update(kwargs)

        self._connection = connection
        self._error: dict[str, str] | None = None
        self._last_response: Response | None = None
        self._fields: dict[str, Any] = {}

        attributes = payload.get("attributes") or {}
        self._id: str | None = _payload_id(payload)
        self._type: str | None = None

        conn = self._conn
        if self.is_new_record:
            self._url = conn.sobject_url(self.type)
        else:
            self._type = attributes.get("type")
            if attributes.get("url"):
                self._url = conn.absolute_url(attributes["url"])
            else:
                self._url = conn.sobject_url(self.type, self._id)

        for key in INVALID_FIELDS:
            payload.pop(key, None)

        for key, value in payload.items():
            name = key.lower()
            if isinstance(value, Mapping) and "attributes" in value:
                value = self._build_nested(value)
            elif isinstance(value, str) and self._is_temporal(name):
                value = parse_timestamp(value)
            self._fields[name] = value

    def _build_nested(self, payload: Mapping[str, Any]) -> SObject:
        type_name = payload["attributes"].get("type")
        record_class = get_type_registry().get(type_name)
        return record_class(payload, connection=self._conn)

    def _is_temporal(self, name: str) -> bool:
        descriptor = self._conn.schemas.field_metadata(self.type, name)
        return descriptor is not None and descriptor.is_temporal

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    @property
    def _conn(self) -> Connection:
        return type(self).get_connection(self._connection)

    @property
    def id(self) -> str | None:
        return self._id

    @property
    def type(self) -> str:
        return self._type or type(self).record_type()

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_new_record(self) -> bool:
        return self._id is None

    @property
    def error(self) -> dict[str, str] | None:
        """The first error entry of the last failed save."""
        return self._error

    @property
    def last_response(self) -> Response | None:
        return self._last_response

    def __repr__(self) -> str:
        return f"<{self.type}:{self.id}>"

    # -------------------------------------------------------------------------
    # Field map
    # -------------------------------------------------------------------------

    @property
    def fields(self) -> dict[str, Any]:
        """The field map without null values.

        Null entries are dropped from the record itself, not just from the
        returned copy.
        """
        for key in [k for k, v in self._fields.items() if v is None]:
            del self._fields[key]
        return dict(self._fields)

    def update_fields(self, updates: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        """Shallow-merge values into the field map. Not validated until save."""
        merged = dict(updates or {})
        merged.update(kwargs)
        for key, value in merged.items():
            self._fields[key.lower()] = value

    def to_dict(self) -> dict[str, Any]:
        """Compacted field map with nested records expanded."""
        return {
            key: value.to_dict() if isinstance(value, SObject) else value
            for key, value in self.fields.items()
        }

    def _is_field(self, name: str) -> bool:
        return name in self.fields or self._conn.schemas.field_exists(self.type, name)

    def _is_reference(self, name: str) -> bool:
        if name not in self.fields:
            return False
        descriptor = self._conn.schemas.field_metadata(self.type, name)
        return descriptor is not None and descriptor.type == FieldKind.REFERENCE

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def get(self, name: str) -> Any:
        """Return a field value, or the related record for a relationship name.

        Raises:
            UndefinedFieldError: If the name is neither a field nor a relationship
            AmbiguousRelationshipError: If both custom relationship conventions match
        """
        field_name = name.lower()
        if self._is_field(field_name):
            return self.fields.get(field_name)

        if self.relationship_field(field_name) is not None:
            return self.resolve_relationship(field_name)

        raise UndefinedFieldError(f"Undefined field '{name}' for <{self.type}>")

    def set(self, name: str, value: Any) -> None:
        """Assign a field value.

        Relationships are read-only; assign the foreign key field instead.

        Raises:
            UndefinedFieldError: If the name is not a field of this record
        """
        field_name = name.lower()
        if not self._is_field(field_name):
            raise UndefinedFieldError(f"Undefined field '{name}' for <{self.type}>")
        self._fields[field_name] = value

    def relationship_field(self, name: str) -> str | None:
        """Return the reference field that backs a relationship name, if any.

        ``account`` → ``accountid``; ``my_relation__c`` → ``my_relationid__c``
        or ``my_relation_lookup__c``.
        """
        name = name.lower()
        if self._is_reference(name + "id"):
            return name + "id"

        base = name[: -len(CUSTOM_SUFFIX)] if name.endswith(CUSTOM_SUFFIX) else name
        matches = [
            candidate
            for candidate in (base + "id" + CUSTOM_SUFFIX, base + "_lookup" + CUSTOM_SUFFIX)
            if self._is_reference(candidate)
        ]
        if len(matches) > 1:
            raise AmbiguousRelationshipError(
                f"'{name}' on <{self.type}> matches both {matches[0]} and {matches[1]}"
            )
        return matches[0] if matches else None

    def resolve_relationship(self, name: str) -> SObject:
        """Fetch the record a relationship name points at.

        The first declared target type of the reference field is used.
        """
        field_name = self.relationship_field(name)
        if field_name is None:
            raise UndefinedFieldError(f"Undefined relationship '{name}' for <{self.type}>")

        targets = self._conn.schemas.field_property(self.type, field_name, "referenceTo")
        if not targets:
            raise UnmappedTypeError(f"Field <{self.type}#{field_name}> has no reference target")

        related = get_type_registry().get(targets[0])
        return related.find(self.fields[field_name], connection=self._conn)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_") or hasattr(type(self), name):
            object.__setattr__(self, name, value)
        else:
            self.set(name, value)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def saveable_fields(self) -> dict[str, Any]:
        """Updateable schema fields with dates serialized for the wire."""
        schemas = self._conn.schemas
        saveable: dict[str, Any] = {}

        for key, value in self.fields.items():
            key = key.lower()
            descriptor = schemas.field_metadata(self.type, key)
            if descriptor is None or not descriptor.updateable:
                continue

            if descriptor.type == FieldKind.DATE:
                value = format_date(value)
            elif descriptor.type == FieldKind.DATETIME:
                value = format_datetime(value)
            saveable[key] = value

        return saveable

    def save(self) -> bool:
        """Create (new record) or update (existing record) on the server.

        Raises:
            SalesforceError: Classified by the server's error code on failure
        """
        logger.info("Saving <%s:%s>", self.type, self.id)
        method = "POST" if self.is_new_record else "PATCH"
        response = self._conn.request(method, self.url, json=self.saveable_fields())
        self._last_response = response

        if response.success:
            self._error = None
            if self.is_new_record:
                self._assign_created_id(response)
            return True

        self._error = parse_error_body(response.text)
        raise build_error(self._error["message"], self._error["errorCode"], repr(self))

    def _assign_created_id(self, response: Response) -> None:
        body = response.json()
        if isinstance(body, dict) and body.get("id"):
            self._id = body["id"]
            self._fields["id"] = body["id"]
            self._url = self._conn.sobject_url(self.type, self._id)

    def delete(self) -> bool:
        """Delete the record on the server. Returns whether the call succeeded."""
        logger.info("Deleting <%s:%s>", self.type, self.id)
        self._last_response = self._conn.request("DELETE", self.url)
        return self._last_response.success

    def reload(self) -> SObject:
        """Replace local state with a fresh copy fetched by id."""
        fresh = type(self).find(self.id, connection=self._conn)
        self._fields = fresh._fields
        self._type = fresh._type
        self._url = fresh._url
        return self

    # -------------------------------------------------------------------------
    # Class-level operations
    # -------------------------------------------------------------------------

    @classmethod
    def record_type(cls) -> str:
        if not cls.type_name:
            raise NotImplementedError(f"{cls.__name__} must define the class attribute 'type_name'")
        return cls.type_name

    @classmethod
    def get_connection(cls, connection: Connection | None = None) -> Connection:
        return connection or cls.connection or get_connection()

    @classmethod
    def schema(cls, connection: Connection | None = None) -> SchemaDescription:
        return cls.get_connection(connection).schemas.describe(cls.record_type())

    @classmethod
    def all_fields(cls, connection: Connection | None = None) -> list[str]:
        return cls.schema(connection).field_names()

    @classmethod
    def field_exists(cls, name: str, connection: Connection | None = None) -> bool:
        return cls.schema(connection).has_field(name)

    @classmethod
    def field_property(cls, name: str, prop: str, connection: Connection | None = None) -> Any:
        schemas = cls.get_connection(connection).schemas
        return schemas.field_property(cls.record_type(), name, prop)

    @classmethod
    def field_type(cls, name: str, connection: Connection | None = None) -> str:
        return cls.field_property(name, "type", connection)

    @classmethod
    def find(cls, record_id: str, connection: Connection | None = None) -> SObject:
        """Fetch a record with all fields.

        Falls back to find_throttled when the record has too many fields for
        a single GET.
        """
        try:
            return cls.find_by_id(record_id, connection)
        except QueryTooComplicatedError:
            logger.warning(
                "<%s:%s> has too many fields for one call, fetching in batches",
                cls.record_type(),
                record_id,
            )
            return cls.find_throttled(record_id, connection)

    @classmethod
    def find_by_id(cls, record_id: str, connection: Connection | None = None) -> SObject:
        """GET a record by id.

        Raises:
            QueryTooComplicatedError: If the record has too many fields
            SalesforceError: On any other failure
        """
        conn = cls.get_connection(connection)
        type_name = cls.record_type()
        payload = conn.get_json(conn.sobject_url(type_name, record_id), f"<{type_name}:{record_id}>")
        return cls(payload, connection=conn)

    @classmethod
    def find_fields_by_id(
        cls,
        record_id: str,
        fields: list[str] | tuple[str, ...] = ("id",),
        connection: Connection | None = None,
    ) -> dict[str, Any]:
        """Query selected fields of one record and return its raw payload.

        Raises:
            ObjectNotFoundError: If no record has that id
        """
        conn = cls.get_connection(connection)
        type_name = cls.record_type()
        query = Query(
            type_name,
            where=f"id = {quote_literal(record_id)}",
            fields=list(fields),
            connection=conn,
        )
        records = query.records
        if not records:
            raise ObjectNotFoundError(f"{type_name} with ID {record_id} not found.", "NOT_FOUND")
        return records[0]

    @classmethod
    def find_throttled(cls, record_id: str, connection: Connection | None = None) -> SObject:
        """Fetch a record by querying its fields in batches and merging them."""
        conn = cls.get_connection(connection)
        names = cls.all_fields(conn)
        size = conn.settings.field_batch_size

        merged: dict[str, Any] = {}
        for start in range(0, len(names), size):
            merged.update(cls.find_fields_by_id(record_id, names[start : start + size], conn))
        return cls(merged, connection=conn)

    @classmethod
    def create(
        cls,
        fields: Mapping[str, Any] | None = None,
        connection: Connection | None = None,
        **kwargs: Any,
    ) -> SObject:
        """Build a new record and save it immediately."""
        record = cls(fields, connection=connection, **kwargs)
        record.save()
        return record

    @classmethod
    def where(
        cls,
        *conditions: str,
        fields: list[str] | None = None,
        limit: int | None = None,
        connection: Connection | None = None,
    ) -> Query:
        """Build a Query over this type, selecting all fields unless told otherwise."""
        conn = cls.get_connection(connection)
        return Query(
            cls.record_type(),
            where=list(conditions),
            fields=fields if fields is not None else cls.all_fields(conn),
            limit=limit,
            connection=conn,
        )

    @classmethod
    def all(cls, connection: Connection | None = None) -> Query:
        return cls.where(connection=connection)

    @classmethod
    def _minimal_query(cls, connection: Connection | None = None) -> Query:
        conn = cls.get_connection(connection)
        return Query(cls.record_type(), fields=["id"], connection=conn)

    @classmethod
    def count(cls, connection: Connection | None = None) -> int:
        """Total number of records of this type."""
        return cls._minimal_query(connection).total_size

    @classmethod
    def first(cls, connection: Connection | None = None) -> SObject | None:
        """Fully fetch the first record returned by an unfiltered query."""
        records = cls._minimal_query(connection).records
        if not records:
            return None
        return cls.find(_payload_id(records[0]), connection)


__all__ = [
    "SObject",
    "format_date",
    "format_datetime",
    "parse_timestamp",
]
