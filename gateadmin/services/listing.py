"""
Listing machinery shared by the paginated table pages.

Design notes
------------
- Every listable table is described by a ``ListingTable``: its ORM model,
  the whitelist of sortable column names and its filter fields in the
  order their clauses are appended.
- Sort column and direction reach SQL only after being checked against
  the whitelist in ``gateadmin.dependencies.ListingParams``; filter values
  always travel as bound parameters.
- The COUNT and the page SELECT are built from the same clause list, so
  both statements bind the same filter parameters in the same order.
- A missing table on the COUNT query is treated as an empty listing.
"""
import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from pydantic import BaseModel
from sqlalchemy import BigInteger, String, asc, cast, desc, false, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement, Select

from gateadmin.errors import QueryError, is_missing_table
from gateadmin.models import MnpGateConfig, TaxRate
from gateadmin.schemas import PageView

if TYPE_CHECKING:
    from gateadmin.dependencies import ListingParams

logger = logging.getLogger(__name__)

EXACT = "exact"
CONTAINS = "contains"

SORT_DIRECTIONS: frozenset[str] = frozenset({"asc", "desc"})
DEFAULT_DIRECTION = "asc"


@dataclass(frozen=True)
class FilterField:
    """A query-string key bound to a column and a match mode."""

    param: str
    column: Any
    match: str = EXACT


@dataclass(frozen=True)
class ListingTable:
    model: type
    sortable: frozenset[str]
    filters: tuple[FilterField, ...]
    default_sort: str = "id"


TAX_RATE_LISTING = ListingTable(
    model=TaxRate,
    sortable=frozenset({"id", "tax_category_id", "start_date", "end_date", "rate_percent"}),
    filters=(
        FilterField("id", TaxRate.id),
        FilterField("tax_category_id", TaxRate.tax_category_id),
        FilterField("start_date", TaxRate.start_date, CONTAINS),
        FilterField("end_date", TaxRate.end_date, CONTAINS),
        FilterField("rate_percent", TaxRate.rate_percent),
    ),
)

GATE_CONFIG_LISTING = ListingTable(
    model=MnpGateConfig,
    sortable=frozenset({"id", "engine", "max_workers", "cache_days"}),
    filters=(
        FilterField("id", MnpGateConfig.id),
        FilterField("engine", MnpGateConfig.engine, CONTAINS),
    ),
)


# ---------------------------------------------------------------------------
# Query building
# ---------------------------------------------------------------------------

INT32_RANGE = (-(2 ** 31), 2 ** 31 - 1)
INT64_RANGE = (-(2 ** 63), 2 ** 63 - 1)


def _storable(column, value: Any) -> bool:
    """Whether *value* fits the column's type, so the driver can bind it."""
    if isinstance(value, Decimal):
        return value.is_finite()
    if isinstance(value, int):
        low, high = INT64_RANGE if isinstance(column.type, BigInteger) else INT32_RANGE
        return low <= value <= high
    return True


def _exact_clause(column, raw: str) -> ColumnElement:
    # Coerce to the column's type so strict drivers accept the parameter;
    # a value that cannot be coerced or stored cannot equal any stored value.
    try:
        value = column.type.python_type(raw)
    except (ValueError, ArithmeticError):
        return false()
    if not _storable(column, value):
        return false()
    return column == value


def _contains_clause(column, raw: str) -> ColumnElement:
    if not isinstance(column.type, String):
        column = cast(column, String)
    return column.like(f"%{raw}%")


def build_where(table: ListingTable, filters: Mapping[str, str]) -> list[ColumnElement]:
    """Return one clause per non-empty filter, in declaration order."""
    clauses: list[ColumnElement] = []
    for field in table.filters:
        raw = filters.get(field.param, "")
        if raw == "":
            continue
        if field.match == CONTAINS:
            clauses.append(_contains_clause(field.column, raw))
        else:
            clauses.append(_exact_clause(field.column, raw))
    return clauses


def count_query(table: ListingTable, clauses: Sequence[ColumnElement]) -> Select:
    return select(func.count()).select_from(table.model).where(*clauses)


def page_query(
    table: ListingTable,
    clauses: Sequence[ColumnElement],
    sort: str,
    direction: str,
    limit: int,
    offset: int,
) -> Select:
    """
    Return the paginated SELECT for *table*.

    *sort* and *direction* must already be whitelisted; an unknown value
    here is a programming error, not user input.
    """
    if sort not in table.sortable or direction not in SORT_DIRECTIONS:
        raise ValueError(f"unvalidated sort {sort!r} {direction!r}")
    column = getattr(table.model, sort)
    order_expr = desc(column) if direction == "desc" else asc(column)
    return (
        select(table.model)
        .where(*clauses)
        .order_by(order_expr)
        .limit(limit)
        .offset(offset)
    )


def build_queries(
    table: ListingTable,
    filters: Mapping[str, str],
    sort: str,
    direction: str,
    limit: int,
    offset: int,
) -> tuple[Select, Select]:
    """Return the ``(count, page)`` statement pair for one listing request."""
    clauses = build_where(table, filters)
    return count_query(table, clauses), page_query(table, clauses, sort, direction, limit, offset)


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Pagination:
    page: int
    page_size: int
    total: int
    total_pages: int
    prev_page: int
    next_page: int

    @property
    def offset(self) -> int:
        """SQL OFFSET for the (already clamped) page."""
        return (self.page - 1) * self.page_size


def paginate(total: int, page: int, page_size: int) -> Pagination:
    """
    Compute page counters for *total* rows.

    With no rows the requested page is kept as-is and every counter is 0;
    otherwise a page past the end is clamped to the last page.
    """
    if total <= 0:
        return Pagination(page, page_size, 0, 0, 0, 0)
    total_pages = math.ceil(total / page_size)
    page = min(page, total_pages)
    prev_page = page - 1 if page > 1 else 0
    next_page = page + 1 if page < total_pages else 0
    return Pagination(page, page_size, total, total_pages, prev_page, next_page)


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

async def server_version(db: AsyncSession) -> str:
    """Return the database server's version string (queried every call)."""
    if db.get_bind().dialect.name == "sqlite":
        stmt = select(func.sqlite_version())
    else:
        stmt = select(func.version())
    try:
        return str((await db.execute(stmt)).scalar_one())
    except SQLAlchemyError as exc:
        raise QueryError("Database error", exc) from exc


async def fetch_listing(
    db: AsyncSession,
    table: ListingTable,
    filters: Mapping[str, str],
    sort: str,
    direction: str,
    page: int,
    page_size: int,
) -> tuple[list, Pagination]:
    """
    Return the ORM rows of the requested page and its pagination counters.

    Issues a COUNT first; the page SELECT is skipped when nothing matches.
    """
    clauses = build_where(table, filters)

    try:
        total: int = (await db.execute(count_query(table, clauses))).scalar_one()
    except SQLAlchemyError as exc:
        if not is_missing_table(exc):
            raise QueryError("Count query error", exc) from exc
        logger.warning("Table %s is missing; rendering empty listing", table.model.__tablename__)
        total = 0

    pagination = paginate(total, page, page_size)
    if pagination.total == 0:
        return [], pagination

    stmt = page_query(table, clauses, sort, direction, page_size, pagination.offset)
    try:
        rows = (await db.execute(stmt)).scalars().all()
    except SQLAlchemyError as exc:
        raise QueryError("Database query error", exc) from exc
    return list(rows), pagination


async def listing_page(
    db: AsyncSession,
    params: "ListingParams",
    row_schema: type[BaseModel],
    page_size: int,
) -> PageView:
    """
    Assemble the view-model for one listing page.

    Statements run in order: server version, COUNT, then the page SELECT.
    """
    version = await server_version(db)
    rows, pagination = await fetch_listing(
        db,
        params.table,
        params.filters,
        params.sort,
        params.direction,
        params.page,
        page_size,
    )
    return PageView(
        version=version,
        rows=[row_schema.model_validate(row) for row in rows],
        page=pagination.page,
        page_size=pagination.page_size,
        total=pagination.total,
        total_pages=pagination.total_pages,
        prev_page=pagination.prev_page,
        next_page=pagination.next_page,
        sort=params.sort,
        dir=params.direction,
        filters=params.filters,
        base_query_prefix=params.base_query_prefix,
    )
