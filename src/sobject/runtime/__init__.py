"""
sobject runtime: connection, schema and type registries, records and queries.
"""

from sobject.runtime.connection import Connection, configure, get_connection, set_connection
from sobject.runtime.query import Query, QueryState
from sobject.runtime.record import SObject
from sobject.runtime.schema_registry import SchemaRegistry
from sobject.runtime.types import TypeRegistry, get_type_registry, register_type

__all__ = [
    "Connection",
    "Query",
    "QueryState",
    "SObject",
    "SchemaRegistry",
    "TypeRegistry",
    "configure",
    "get_connection",
    "get_type_registry",
    "register_type",
    "set_connection",
]
