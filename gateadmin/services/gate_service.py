import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gateadmin.errors import QueryError, is_missing_table
from gateadmin.models import MnpGate
from gateadmin.schemas import GateRow

logger = logging.getLogger(__name__)


async def list_gates(db: AsyncSession) -> list[GateRow]:
    """
    Return every ``mnp_gate`` row for the full-schema view.

    A missing table yields an empty list rather than an error.
    """
    try:
        result = await db.execute(select(MnpGate).order_by(MnpGate.id))
        gates = result.scalars().all()
    except SQLAlchemyError as exc:
        if not is_missing_table(exc):
            raise QueryError("Database query error", exc) from exc
        logger.warning("Table %s is missing; rendering empty list", MnpGate.__tablename__)
        return []
    return [GateRow.model_validate(g) for g in gates]
