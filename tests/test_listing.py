"""
Unit tests for the listing machinery: query-string parsing, WHERE/ORDER
BY construction, pagination arithmetic and the link prefix.  No database
is involved except where a service function is called directly.
"""
from decimal import Decimal

import pytest
from sqlalchemy import text
from sqlalchemy.dialects import sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import QueryParams

from gateadmin.dependencies import ListingParams, base_query_prefix
from gateadmin.errors import QueryError
from gateadmin.models import TaxRate
from gateadmin.schemas import GateConfigRow, GateRow
from gateadmin.services.listing import (
    GATE_CONFIG_LISTING,
    TAX_RATE_LISTING,
    build_queries,
    fetch_listing,
    page_query,
    paginate,
    server_version,
)


def _params(table, query: str) -> ListingParams:
    return ListingParams(table, QueryParams(query))


def _compiled(stmt):
    return stmt.compile(dialect=sqlite.dialect())


# ---------------------------------------------------------------------------
# Query-string parsing
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("sort", ["", "name", "id; DROP TABLE sys_tax_rate", "ID", "engine"])
def test_unlisted_sort_falls_back_to_id(sort: str):
    params = _params(TAX_RATE_LISTING, f"sort={sort}")
    assert params.sort == "id"


def test_whitelisted_sort_is_kept():
    assert _params(TAX_RATE_LISTING, "sort=rate_percent").sort == "rate_percent"
    assert _params(GATE_CONFIG_LISTING, "sort=cache_days").sort == "cache_days"


def test_sort_whitelist_is_per_table():
    # tax_category_id is only sortable on the tax-rate table
    assert _params(GATE_CONFIG_LISTING, "sort=tax_category_id").sort == "id"


@pytest.mark.parametrize("direction", ["", "ASC", "descending", "up", "asc "])
def test_unlisted_direction_falls_back_to_asc(direction: str):
    assert _params(TAX_RATE_LISTING, f"dir={direction}").direction == "asc"


def test_desc_direction_is_kept():
    assert _params(TAX_RATE_LISTING, "dir=desc").direction == "desc"


@pytest.mark.parametrize("raw, expected", [
    ("", 1), ("abc", 1), ("0", 1), ("-3", 1), ("2.5", 1), ("4", 4), ("%2B4", 4),
    ("1_0", 1), (" 4", 1), ("4 ", 1), ("\u0663", 1),
])
def test_page_parsing(raw: str, expected: int):
    assert _params(TAX_RATE_LISTING, f"page={raw}").page == expected


def test_missing_page_defaults_to_one():
    assert _params(TAX_RATE_LISTING, "").page == 1


def test_filters_copied_verbatim():
    params = _params(TAX_RATE_LISTING, "id=7&start_date=2024-0&unknown=x")
    assert params.filters == {
        "id": "7",
        "tax_category_id": "",
        "start_date": "2024-0",
        "end_date": "",
        "rate_percent": "",
    }


def test_gate_config_filters():
    params = _params(GATE_CONFIG_LISTING, "engine=kafka&max_workers=3")
    assert params.filters == {"id": "", "engine": "kafka"}


def test_repeated_keys_first_value_wins():
    params = _params(TAX_RATE_LISTING, "page=2&page=5&sort=end_date&sort=id&dir=desc&dir=asc&id=7&id=8")
    assert (params.page, params.sort, params.direction) == (2, "end_date", "desc")
    assert params.filters["id"] == "7"


# ---------------------------------------------------------------------------
# Pagination link prefix
# ---------------------------------------------------------------------------

def test_prefix_drops_page_and_keeps_everything_else():
    prefix = base_query_prefix(QueryParams("page=3&sort=end_date&dir=desc&id=5&extra=1"))
    assert prefix.startswith("?")
    assert prefix.endswith("&")
    pairs = dict(p.split("=", 1) for p in prefix[1:-1].split("&"))
    assert "page" not in pairs
    assert pairs == {"sort": "end_date", "dir": "desc", "id": "5", "extra": "1"}


def test_prefix_without_other_params():
    assert base_query_prefix(QueryParams("page=9")) == "?"
    assert base_query_prefix(QueryParams("")) == "?"


def test_prefix_encodes_values():
    assert base_query_prefix(QueryParams("engine=a+b%26c")) == "?engine=a+b%26c&"


# ---------------------------------------------------------------------------
# Query building
# ---------------------------------------------------------------------------

def test_no_filters_no_where_clause():
    count_q, page_q = build_queries(TAX_RATE_LISTING, {}, "id", "asc", 10, 0)
    assert "WHERE" not in str(_compiled(count_q))
    assert "WHERE" not in str(_compiled(page_q))


def test_filter_parameters_follow_clause_order():
    filters = {
        "rate_percent": "20",
        "end_date": "2025",
        "id": "4",
        "start_date": "2024",
        "tax_category_id": "2",
    }
    count_q, page_q = build_queries(TAX_RATE_LISTING, filters, "start_date", "desc", 10, 20)

    count_c = _compiled(count_q)
    page_c = _compiled(page_q)
    expected = [4, 2, "%2024%", "%2025%", Decimal("20")]

    assert [count_c.params[k] for k in count_c.positiontup] == expected
    assert [page_c.params[k] for k in page_c.positiontup] == expected + [10, 20]

    sql = str(page_c)
    assert "ORDER BY sys_tax_rate.start_date DESC" in sql
    assert "LIMIT ? OFFSET ?" in sql


def test_count_and_page_share_where_clause():
    count_q, page_q = build_queries(GATE_CONFIG_LISTING, {"engine": "sip"}, "id", "asc", 10, 0)
    where_count = str(_compiled(count_q)).split("WHERE", 1)[1]
    where_page = str(_compiled(page_q)).split("WHERE", 1)[1].split("ORDER BY")[0]
    assert where_count.strip() == where_page.strip()


def test_non_numeric_exact_filter_matches_nothing():
    count_q, _ = build_queries(TAX_RATE_LISTING, {"id": "abc"}, "id", "asc", 10, 0)
    compiled = _compiled(count_q)
    assert compiled.params == {}
    assert "WHERE 0 = 1" in str(compiled) or "WHERE false" in str(compiled).lower()


@pytest.mark.parametrize("filters", [
    {"id": str(2 ** 31)},
    {"tax_category_id": str(-(2 ** 31) - 1)},
    {"id": "9" * 30},
    {"rate_percent": "NaN"},
    {"rate_percent": "-Infinity"},
])
def test_out_of_range_exact_filter_matches_nothing(filters):
    count_q, _ = build_queries(TAX_RATE_LISTING, filters, "id", "asc", 10, 0)
    compiled = _compiled(count_q)
    assert compiled.params == {}


def test_int32_bounds_are_kept():
    count_q, _ = build_queries(TAX_RATE_LISTING, {"id": str(2 ** 31 - 1)}, "id", "asc", 10, 0)
    assert list(_compiled(count_q).params.values()) == [2 ** 31 - 1]


def test_page_query_rejects_unvalidated_sort():
    with pytest.raises(ValueError):
        page_query(TAX_RATE_LISTING, [], "id; DROP TABLE x", "asc", 10, 0)
    with pytest.raises(ValueError):
        page_query(TAX_RATE_LISTING, [], "id", "sideways", 10, 0)


# ---------------------------------------------------------------------------
# Pagination arithmetic
# ---------------------------------------------------------------------------

def test_paginate_empty():
    p = paginate(0, 4, 10)
    assert (p.total_pages, p.prev_page, p.next_page) == (0, 0, 0)


def test_paginate_clamps_past_the_end():
    p = paginate(25, 5, 10)
    assert p.total_pages == 3
    assert p.page == 3
    assert p.offset == 20
    assert p.prev_page == 2
    assert p.next_page == 0


def test_paginate_first_page():
    p = paginate(25, 1, 10)
    assert (p.page, p.prev_page, p.next_page, p.offset) == (1, 0, 2, 0)


def test_paginate_exact_multiple():
    p = paginate(20, 2, 10)
    assert (p.total_pages, p.next_page) == (2, 0)


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------

def test_gate_config_row_nulls_become_defaults():
    row = GateConfigRow.model_validate(
        {"id": 1, "engine": None, "max_workers": None, "cache_days": None, "config": None}
    )
    assert (row.engine, row.max_workers, row.cache_days, row.config) == ("", 0, 0, "")


def test_gate_row_nulls_become_defaults():
    data = {name: None for name in GateRow.model_fields}
    data["id"] = 9
    row = GateRow.model_validate(data)
    assert row.name == ""
    assert row.insert_dt == ""
    assert row.billing_account_id == 0


# ---------------------------------------------------------------------------
# Execution against the test database
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_server_version(db_session: AsyncSession):
    version = await server_version(db_session)
    assert version.count(".") >= 1


@pytest.mark.asyncio
async def test_fetch_listing_skips_page_query_when_empty(db_session: AsyncSession):
    rows, pagination = await fetch_listing(db_session, TAX_RATE_LISTING, {}, "id", "asc", 1, 10)
    assert rows == []
    assert pagination.total == 0


@pytest.mark.asyncio
async def test_fetch_listing_missing_table_is_empty(db_session: AsyncSession, drop_table):
    await drop_table(TaxRate)
    rows, pagination = await fetch_listing(db_session, TAX_RATE_LISTING, {}, "id", "asc", 2, 10)
    assert rows == []
    assert (pagination.total, pagination.total_pages) == (0, 0)


@pytest.mark.asyncio
async def test_fetch_listing_other_errors_propagate(db_session: AsyncSession, drop_table):
    await drop_table(TaxRate)
    await db_session.execute(text("CREATE TABLE sys_tax_rate (id INTEGER PRIMARY KEY)"))
    await db_session.commit()

    with pytest.raises(QueryError) as excinfo:
        await fetch_listing(
            db_session, TAX_RATE_LISTING, {"tax_category_id": "1"}, "id", "asc", 1, 10
        )
    assert excinfo.value.label == "Count query error"
