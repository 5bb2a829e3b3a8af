"""Fixtures for sobject unit tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fakes import (
    ACCOUNT_DESCRIBE,
    CONTACT_DESCRIBE,
    INSTANCE_URL,
    OPPORTUNITY_DESCRIBE,
    FakeServer,
)

from sobject import Connection, ConnectionSettings, set_connection


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def settings() -> ConnectionSettings:
    return ConnectionSettings(instance_url=INSTANCE_URL, access_token="test-token")


@pytest.fixture
def bare_connection(server: FakeServer, settings: ConnectionSettings) -> Iterator[Connection]:
    """Default connection with no schemas pre-registered."""
    conn = Connection.from_settings(settings, client=server.client())
    set_connection(conn)
    yield conn
    set_connection(None)
    conn.close()


@pytest.fixture
def connection(bare_connection: Connection) -> Connection:
    """Default connection with canned Opportunity/Account/Contact schemas."""
    for describe in (OPPORTUNITY_DESCRIBE, ACCOUNT_DESCRIBE, CONTACT_DESCRIBE):
        bare_connection.schemas.register(describe)
    return bare_connection
