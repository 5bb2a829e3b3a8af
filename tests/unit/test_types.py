"""Tests for the record type registry."""

from __future__ import annotations

import pytest
from fakes import Account, Opportunity

from sobject import SObject, SObjectError, UnmappedTypeError, register_type
from sobject.runtime.types import TypeRegistry, get_type_registry


class TestTypeRegistry:
    def test_get_registered_type(self) -> None:
        registry = TypeRegistry()
        registry.register("Opportunity", Opportunity)
        assert registry.get("Opportunity") is Opportunity
        assert "Opportunity" in registry

    def test_unknown_type_fails_closed(self) -> None:
        registry = TypeRegistry()
        with pytest.raises(UnmappedTypeError, match="No mapping for type 'Lead'"):
            registry.get("Lead")

    def test_unmapped_type_is_a_lookup_error(self) -> None:
        with pytest.raises(LookupError):
            TypeRegistry().get("Lead")

    def test_reregistering_same_class_is_allowed(self) -> None:
        registry = TypeRegistry()
        registry.register("Account", Account)
        registry.register("Account", Account)
        assert registry.list_types() == ["Account"]

    def test_conflicting_registration_rejected(self) -> None:
        registry = TypeRegistry()
        registry.register("Account", Account)
        with pytest.raises(SObjectError, match="already registered"):
            registry.register("Account", Opportunity)

    def test_unregister(self) -> None:
        registry = TypeRegistry()
        registry.register("Account", Account)
        registry.unregister("Account")
        assert "Account" not in registry


class TestRegisterType:
    def test_decorator_uses_global_registry(self) -> None:
        assert get_type_registry().get("Opportunity") is Opportunity

    def test_decorator_requires_type_name(self) -> None:
        class Nameless(SObject):
            pass

        with pytest.raises(SObjectError, match="type_name"):
            register_type(Nameless)

    def test_decorator_returns_class(self) -> None:
        class Lead(SObject):
            type_name = "TestLead"

        try:
            assert register_type(Lead) is Lead
        finally:
            get_type_registry().unregister("TestLead")
