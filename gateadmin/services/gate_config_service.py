"""
Gateway-configuration service: the plain list, the paginated browse page
and the JSON export.

The ``config`` column holds free-form JSON text.  The export never drops
it: text that does not decode to a strict JSON object is passed through
under the ``"_raw"`` key instead.
"""
import json
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gateadmin.config import settings
from gateadmin.dependencies import ListingParams
from gateadmin.errors import QueryError, is_missing_table
from gateadmin.models import MnpGateConfig
from gateadmin.schemas import GateConfigExport, GateConfigRow, PageView
from gateadmin.services.listing import listing_page

logger = logging.getLogger(__name__)

RAW_CONFIG_KEY = "_raw"


def _reject_constant(name: str) -> None:
    # NaN and Infinity are Python extensions, not JSON.
    raise ValueError(f"invalid JSON constant {name}")


def parse_config(text: str | None) -> dict[str, Any] | None:
    """
    Decode *text* as a JSON object.

    Returns None for NULL, empty or ``null`` text, and ``{"_raw": text}``
    when the text is not a JSON object.
    """
    if not text:
        return None
    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return {RAW_CONFIG_KEY: text}
    if parsed is None:
        return None
    if not isinstance(parsed, dict):
        return {RAW_CONFIG_KEY: text}
    return parsed


async def list_configs(db: AsyncSession) -> list[GateConfigRow]:
    """
    Return every ``mnp_gate_config`` row, ordered by id.

    A missing table yields an empty list rather than an error.
    """
    try:
        result = await db.execute(select(MnpGateConfig).order_by(MnpGateConfig.id))
        configs = result.scalars().all()
    except SQLAlchemyError as exc:
        if not is_missing_table(exc):
            raise QueryError("Database query error", exc) from exc
        logger.warning("Table %s is missing; rendering empty list", MnpGateConfig.__tablename__)
        return []
    return [GateConfigRow.model_validate(c) for c in configs]


async def get_gate_config_page(db: AsyncSession, params: ListingParams) -> PageView:
    return await listing_page(db, params, GateConfigRow, settings.PAGE_SIZE)


async def export_configs(db: AsyncSession) -> list[GateConfigExport]:
    """Return every configuration row, unfiltered, ordered by id."""
    try:
        result = await db.execute(select(MnpGateConfig).order_by(MnpGateConfig.id))
        configs = result.scalars().all()
    except SQLAlchemyError as exc:
        raise QueryError("Database query error", exc) from exc

    return [
        GateConfigExport(
            id=c.id,
            engine=c.engine,
            max_workers=c.max_workers,
            cache_days=c.cache_days,
            config=parse_config(c.config),
        )
        for c in configs
    ]
