"""
Type registry: maps record type names to record classes.

Consulted whenever a payload carries its own type (nested relationship
payloads, query results) and when a reference field is resolved. Unknown
names fail closed with UnmappedTypeError; there is no generic fallback class.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from sobject.core.errors import SObjectError, UnmappedTypeError

if TYPE_CHECKING:
    from sobject.runtime.record import SObject

S = TypeVar("S", bound="type[SObject]")


class TypeRegistry:
    """
    Registry of record classes.

    Supports:
    - Manual registration via register()
    - Class decoration via register_type()
    - Lookup by type name
    """

    def __init__(self) -> None:
        self._types: dict[str, type[SObject]] = {}

    def register(self, type_name: str, record_class: type[SObject]) -> None:
        """
        Register a record class.

        Raises:
            SObjectError: If the name is already taken by a different class
        """
        existing = self._types.get(type_name)
        if existing is not None and existing is not record_class:
            raise SObjectError(
                f"Type '{type_name}' is already registered to {existing.__name__}. "
                f"Cannot register {record_class.__name__}."
            )
        self._types[type_name] = record_class

    def unregister(self, type_name: str) -> None:
        self._types.pop(type_name, None)

    def get(self, type_name: str) -> type[SObject]:
        """
        Get the record class for a type name.

        Raises:
            UnmappedTypeError: If no class is registered under that name
        """
        try:
            return self._types[type_name]
        except KeyError:
            available = sorted(self._types)
            raise UnmappedTypeError(
                f"No mapping for type '{type_name}'. Registered types: {available}"
            ) from None

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._types

    def list_types(self) -> list[str]:
        return list(self._types.keys())


# Global registry instance
_registry: TypeRegistry | None = None


def get_type_registry() -> TypeRegistry:
    """Get the global type registry."""
    global _registry
    if _registry is None:
        _registry = TypeRegistry()
    return _registry


def register_type(record_class: S) -> S:
    """Class decorator registering an SObject subclass under its ``type_name``.

    Example:
        @register_type
        class Opportunity(SObject):
            type_name = "Opportunity"
    """
    type_name = getattr(record_class, "type_name", None)
    if not type_name:
        raise SObjectError(f"{record_class.__name__} must define 'type_name' to be registered")
    get_type_registry().register(type_name, record_class)
    return record_class
