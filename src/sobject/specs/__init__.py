"""Declarative types describing server-side record schemas."""

from .schema import FieldDescriptor, FieldKind, SchemaDescription

__all__ = ["FieldDescriptor", "FieldKind", "SchemaDescription"]
