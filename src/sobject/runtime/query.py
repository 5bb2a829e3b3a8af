"""
Lazy, paginated SOQL queries.

A Query fetches one page of results on first access and caches it. When
the server reports more pages, a single successor Query pointing at the
``nextRecordsUrl`` is built on demand and memoized, so iterating walks the
page chain one page at a time:

    Query("Opportunity", where="amount > 1000", fields=["name"], limit=50)
        → GET /query?q=SELECT name, id FROM Opportunity WHERE amount > 1000 LIMIT 50
        → page 1 records ... (done=false)
        → GET <nextRecordsUrl>
        → page 2 records ... (done=true)

A continuation (a Query built with ``url``) fetches that URL verbatim and
only carries the filter, field list and limit forward to its own successor.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from sobject.runtime.connection import Connection, get_connection
from sobject.runtime.types import get_type_registry

if TYPE_CHECKING:
    from sobject.runtime.record import SObject

logger = logging.getLogger(__name__)


class QueryState(StrEnum):
    """Pagination state of a single Query page."""

    FRESH = "fresh"
    PAGE_LOADED = "page_loaded"
    EXHAUSTED = "exhausted"


def quote_literal(value: Any) -> str:
    """Quote a value as a SOQL string literal."""
    text = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{text}'"


def _as_list(value: str | Sequence[str] | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


class Query:
    """
    A filter + field list + limit against one record type.

    Iterating yields record instances in server order across all pages.
    Pages already fetched are cached on their Query instance, so iterating
    the same Query again replays from cache; a fresh traversal from the
    server needs a fresh Query.
    """

    def __init__(
        self,
        type_name: str,
        where: str | Sequence[str] | None = None,
        fields: str | Sequence[str] | None = None,
        limit: int | None = None,
        url: str | None = None,
        connection: Connection | None = None,
    ):
        if not isinstance(type_name, str) or not type_name:
            raise TypeError(f"Query type must be a non-empty string, got {type_name!r}")
        if limit is not None and limit < 0:
            raise ValueError(f"Query limit must not be negative, got {limit}")

        self.type_name = type_name
        self.where = _as_list(where)
        self._fields = _as_list(fields)
        self.limit = limit
        self._url = url
        self._connection = connection

        self._data: dict[str, Any] | None = None
        self._record_instances: list[SObject] | None = None
        self._next: Query | None = None

    def __repr__(self) -> str:
        if self._url:
            return f"<Query {self.type_name} continuation={self._url}>"
        return f"<Query {self.soql!r}>"

    @property
    def connection(self) -> Connection:
        return self._connection or get_connection()

    @property
    def is_continuation(self) -> bool:
        return self._url is not None

    # -------------------------------------------------------------------------
    # Query construction
    # -------------------------------------------------------------------------

    @property
    def fields(self) -> list[str]:
        """Requested fields, lowercased and de-duplicated, always including id."""
        seen: dict[str, None] = {}
        for name in [*self._fields, "id"]:
            seen.setdefault(name.lower(), None)
        return list(seen)

    @property
    def soql(self) -> str:
        parts = [f"SELECT {', '.join(self.fields)} FROM {self.type_name}"]
        if self.where:
            parts.append("WHERE " + " AND ".join(self.where))
        if self.limit is not None:
            parts.append(f"LIMIT {self.limit}")
        return " ".join(parts)

    @property
    def url(self) -> str:
        return self._url or f"{self.connection.service_url}/query"

    @property
    def params(self) -> dict[str, str]:
        if self._url:
            return {}
        return {"q": self.soql}

    # -------------------------------------------------------------------------
    # Page state
    # -------------------------------------------------------------------------

    @property
    def state(self) -> QueryState:
        if self._data is None:
            return QueryState.FRESH
        if self.more:
            return QueryState.PAGE_LOADED
        return QueryState.EXHAUSTED

    @property
    def data(self) -> dict[str, Any]:
        """The raw page payload, fetched once."""
        if self._data is None:
            logger.debug("Fetching page for %r", self)
            payload = self.connection.get_json(
                self.url, context=f"<{self.type_name}>", params=self.params or None
            )
            self._data = payload or {}
        return self._data

    @property
    def records(self) -> list[dict[str, Any]]:
        """Raw record payloads of this page."""
        return self.data.get("records") or []

    @property
    def done(self) -> bool:
        return bool(self.data.get("done", True))

    @property
    def more(self) -> bool:
        return not self.done and bool(self.data.get("nextRecordsUrl"))

    @property
    def size(self) -> int:
        """Number of records on this page."""
        return len(self.records)

    @property
    def total_size(self) -> int:
        """Total number of rows matching the query, across all pages."""
        return int(self.data.get("totalSize") or 0)

    @property
    def next_records_url(self) -> str | None:
        path = self.data.get("nextRecordsUrl")
        if not path:
            return None
        return self.connection.absolute_url(path)

    @property
    def next_query(self) -> Query | None:
        """The memoized continuation for the next page, or None when exhausted."""
        if not self.more:
            return None
        if self._next is None:
            self._next = Query(
                self.type_name,
                where=self.where,
                fields=self.fields,
                limit=self.limit,
                url=self.next_records_url,
                connection=self._connection,
            )
        return self._next

    @property
    def record_instances(self) -> list[SObject]:
        """Record instances of this page, built once."""
        if self._record_instances is None:
            self._record_instances = [self._instantiate(record) for record in self.records]
        return self._record_instances

    def _instantiate(self, payload: dict[str, Any]) -> SObject:
        attributes = payload.get("attributes") or {}
        record_class = get_type_registry().get(attributes.get("type") or self.type_name)
        return record_class(payload, connection=self._connection)

    # -------------------------------------------------------------------------
    # Iteration
    # -------------------------------------------------------------------------

    def __iter__(self) -> Iterator[SObject]:
        remaining = self.limit
        query: Query | None = self
        while query is not None:
            for record in query.record_instances:
                if remaining is not None:
                    if remaining <= 0:
                        return
                    remaining -= 1
                yield record
            if remaining == 0:
                return
            query = query.next_query

    def first(self) -> SObject | None:
        """First record of the first page, or None for an empty result."""
        instances = self.record_instances
        return instances[0] if instances else None
