"""Tests for the lazy paginated query engine."""

from __future__ import annotations

import pytest
from fakes import API_PATH, SERVICE_URL, Account, Opportunity, error_payload, page_payload, record_payload

from sobject import Query, SalesforceError, UnmappedTypeError
from sobject.runtime.query import QueryState, quote_literal


def _opps(start: int, stop: int) -> list[dict]:
    return [record_payload("Opportunity", f"006{i:03d}", Name=f"Deal {i}") for i in range(start, stop)]


# ---------------------------------------------------------------------------
# Query construction
# ---------------------------------------------------------------------------


class TestQueryString:
    def test_minimal_query_selects_id(self) -> None:
        assert Query("Account").soql == "SELECT id FROM Account"

    def test_fields_lowercased_deduplicated_with_id(self) -> None:
        query = Query("Account", fields=["Name", "name", "Industry", "ID"])
        assert query.fields == ["name", "industry", "id"]

    def test_single_field_string(self) -> None:
        assert Query("Account", fields="Name").fields == ["name", "id"]

    def test_where_clauses_joined_with_and(self) -> None:
        query = Query(
            "Opportunity",
            where=["amount > 100", "isclosed = false"],
            fields=["name"],
            limit=5,
        )
        assert query.soql == (
            "SELECT name, id FROM Opportunity WHERE amount > 100 AND isclosed = false LIMIT 5"
        )

    def test_limit_zero_is_rendered(self) -> None:
        assert Query("Account", limit=0).soql == "SELECT id FROM Account LIMIT 0"

    def test_type_must_be_string(self) -> None:
        with pytest.raises(TypeError):
            Query(None)  # type: ignore[arg-type]

    def test_negative_limit_rejected(self) -> None:
        with pytest.raises(ValueError):
            Query("Account", limit=-1)

    def test_quote_literal_escapes(self) -> None:
        assert quote_literal("O'Brien") == "'O\\'Brien'"

    def test_url_and_params(self, connection) -> None:
        query = Query("Account", fields=["name"])
        assert query.url == f"{SERVICE_URL}/query"
        assert query.params == {"q": "SELECT name, id FROM Account"}

    def test_continuation_uses_url_verbatim(self, connection) -> None:
        url = f"{SERVICE_URL}/query/01gD-2000"
        query = Query("Account", fields=["name"], where="name != null", url=url)
        assert query.is_continuation
        assert query.url == url
        assert query.params == {}


# ---------------------------------------------------------------------------
# Page fetching and state
# ---------------------------------------------------------------------------


class TestPages:
    def test_page_fetched_once(self, connection, server) -> None:
        server.add_query("SELECT id FROM Account", page_payload([record_payload("Account", "001A")]))
        query = Query("Account")

        assert query.state == QueryState.FRESH
        assert query.size == 1
        assert query.total_size == 1
        assert query.records[0]["Id"] == "001A"

        assert len(server.queries()) == 1
        assert query.state == QueryState.EXHAUSTED

    def test_record_instances_are_cached(self, connection, server) -> None:
        server.add_query("SELECT id FROM Account", page_payload([record_payload("Account", "001A")]))
        query = Query("Account")

        first = query.record_instances
        assert query.record_instances is first
        assert isinstance(first[0], Account)

    def test_page_loaded_state(self, connection, server) -> None:
        server.add_query(
            "SELECT id FROM Account",
            page_payload([record_payload("Account", "001A")], total_size=2, next_url=f"{API_PATH}/query/01g-1"),
        )
        query = Query("Account")
        query.data  # noqa: B018
        assert query.state == QueryState.PAGE_LOADED
        assert query.more

    def test_next_query_memoized(self, connection, server) -> None:
        server.add_query(
            "SELECT name, id FROM Opportunity WHERE amount > 1 LIMIT 9",
            page_payload(_opps(0, 1), total_size=2, next_url=f"{API_PATH}/query/01g-1"),
        )
        query = Query("Opportunity", where="amount > 1", fields=["name"], limit=9)

        successor = query.next_query

        assert successor is query.next_query
        assert successor.url == f"{SERVICE_URL}/query/01g-1"
        assert successor.where == ["amount > 1"]
        assert successor.fields == ["name", "id"]
        assert successor.limit == 9

    def test_no_next_query_when_done(self, connection, server) -> None:
        server.add_query("SELECT id FROM Account", page_payload([]))
        query = Query("Account")
        assert query.next_query is None
        assert query.next_records_url is None

    def test_failed_query_raises(self, connection, server) -> None:
        server.add_query(
            "SELECT nope, id FROM Account",
            error_payload("INVALID_FIELD", "No such column 'nope' on entity 'Account'"),
            status=400,
        )
        with pytest.raises(SalesforceError) as exc_info:
            Query("Account", fields=["nope"]).records  # noqa: B018
        assert exc_info.value.error_code == "INVALID_FIELD"

    def test_unknown_record_type_fails_closed(self, connection, server) -> None:
        server.add_query("SELECT id FROM Lead", page_payload([record_payload("Lead", "00QA")]))
        with pytest.raises(UnmappedTypeError):
            list(Query("Lead"))


# ---------------------------------------------------------------------------
# Iteration
# ---------------------------------------------------------------------------


class TestIteration:
    def test_iterates_across_pages_in_order(self, connection, server) -> None:
        soql = "SELECT name, id FROM Opportunity"
        server.add_query(soql, page_payload(_opps(0, 2), total_size=5, next_url=f"{API_PATH}/query/01g-2"))
        server.add("GET", "query/01g-2", page_payload(_opps(2, 4), total_size=5, next_url=f"{API_PATH}/query/01g-4"))
        server.add("GET", "query/01g-4", page_payload(_opps(4, 5), total_size=5))

        ids = [record.id for record in Query("Opportunity", fields=["name"])]

        assert ids == ["006000", "006001", "006002", "006003", "006004"]
        assert len(server.calls("GET", "query/01g-2")) == 1
        assert len(server.calls("GET", "query/01g-4")) == 1

    def test_next_page_fetched_only_after_first_page_yielded(self, connection, server) -> None:
        soql = "SELECT id FROM Opportunity"
        server.add_query(soql, page_payload(_opps(0, 2), total_size=3, next_url=f"{API_PATH}/query/01g-2"))
        server.add("GET", "query/01g-2", page_payload(_opps(2, 3), total_size=3))

        iterator = iter(Query("Opportunity"))
        next(iterator)
        next(iterator)
        assert server.calls("GET", "query/01g-2") == []

        assert next(iterator).id == "006002"
        assert len(server.calls("GET", "query/01g-2")) == 1

    def test_limit_caps_results_across_pages(self, connection, server) -> None:
        soql = "SELECT id FROM Opportunity LIMIT 5"
        # Server pages in threes and ignores the limit on its second page
        server.add_query(soql, page_payload(_opps(0, 3), total_size=12, next_url=f"{API_PATH}/query/01g-3"))
        server.add("GET", "query/01g-3", page_payload(_opps(3, 6), total_size=12, next_url=f"{API_PATH}/query/01g-6"))
        server.add("GET", "query/01g-6", page_payload(_opps(6, 9), total_size=12))

        ids = [record.id for record in Query("Opportunity", limit=5)]

        assert ids == ["006000", "006001", "006002", "006003", "006004"]
        assert len(set(ids)) == 5
        assert server.calls("GET", "query/01g-6") == []

    def test_reiteration_replays_from_cache(self, connection, server) -> None:
        soql = "SELECT id FROM Opportunity"
        server.add_query(soql, page_payload(_opps(0, 1), total_size=2, next_url=f"{API_PATH}/query/01g-1"))
        server.add("GET", "query/01g-1", page_payload(_opps(1, 2), total_size=2))
        query = Query("Opportunity")

        first_pass = list(query)
        second_pass = list(query)

        assert [r.id for r in first_pass] == [r.id for r in second_pass]
        assert first_pass[0] is second_pass[0]
        assert len(server.requests) == 2

    def test_not_done_without_next_url_stops(self, connection, server) -> None:
        server.add_query(
            "SELECT id FROM Opportunity",
            {"totalSize": 1, "done": False, "records": _opps(0, 1)},
        )
        assert [r.id for r in Query("Opportunity")] == ["006000"]

    def test_first(self, connection, server) -> None:
        server.add_query("SELECT id FROM Opportunity", page_payload(_opps(0, 2)))
        record = Query("Opportunity").first()
        assert isinstance(record, Opportunity)
        assert record.id == "006000"

    def test_first_empty(self, connection, server) -> None:
        server.add_query("SELECT id FROM Opportunity", page_payload([]))
        assert Query("Opportunity").first() is None
