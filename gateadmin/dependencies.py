from urllib.parse import urlencode

from fastapi import Request
from starlette.datastructures import QueryParams

from gateadmin.services.listing import (
    DEFAULT_DIRECTION,
    GATE_CONFIG_LISTING,
    SORT_DIRECTIONS,
    TAX_RATE_LISTING,
    ListingTable,
)


def _first(query: QueryParams, key: str) -> str:
    """First value of *key*; repeated keys do not override earlier ones."""
    values = query.getlist(key)
    return values[0] if values else ""


def _parse_page(raw: str) -> int:
    # Plain ASCII digits with an optional sign; no whitespace or underscores.
    digits = raw[1:] if raw[:1] in ("+", "-") else raw
    if not (digits.isascii() and digits.isdigit()):
        return 1
    page = int(raw)
    return page if page > 0 else 1


def base_query_prefix(query: QueryParams) -> str:
    """
    Return ``?k=v&...&`` for every current parameter except ``page``, so
    templates can append ``page=N``.  Returns ``?`` when nothing remains.
    """
    items = sorted(
        ((key, value) for key, value in query.multi_items() if key != "page"),
        key=lambda item: item[0],
    )
    encoded = urlencode(items)
    return f"?{encoded}&" if encoded else "?"


class ListingParams:
    """
    Listing state parsed from the query string of a table page.

    Unlike FastAPI's ``Query`` validation this never rejects a request;
    malformed values fall back to safe defaults instead.

    Attributes
    ----------
    page:
        1-based page number; non-numeric or non-positive input becomes 1.
        May still exceed the last page; clamping happens after counting.
    sort:
        Column name from ``table.sortable``, otherwise ``table.default_sort``.
        Only values that passed this check are ever placed into SQL text.
    direction:
        ``"asc"`` or ``"desc"``; anything else becomes ``"asc"``.
    filters:
        Raw string per filter key of *table*; ``""`` means not applied.
    base_query_prefix:
        Query-string prefix for pagination links (see ``base_query_prefix``).
    """

    def __init__(self, table: ListingTable, query: QueryParams) -> None:
        self.table = table
        self.page = _parse_page(_first(query, "page"))

        sort = _first(query, "sort")
        self.sort = sort if sort in table.sortable else table.default_sort

        direction = _first(query, "dir")
        self.direction = direction if direction in SORT_DIRECTIONS else DEFAULT_DIRECTION

        self.filters: dict[str, str] = {
            field.param: _first(query, field.param) for field in table.filters
        }
        self.base_query_prefix = base_query_prefix(query)


def tax_rate_params(request: Request) -> ListingParams:
    return ListingParams(TAX_RATE_LISTING, request.query_params)


def gate_config_params(request: Request) -> ListingParams:
    return ListingParams(GATE_CONFIG_LISTING, request.query_params)
