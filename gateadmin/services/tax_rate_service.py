"""Tax-rate listing backing the home page."""
from sqlalchemy.ext.asyncio import AsyncSession

from gateadmin.config import settings
from gateadmin.dependencies import ListingParams
from gateadmin.schemas import PageView, TaxRateRow
from gateadmin.services.listing import listing_page


async def get_tax_rate_page(db: AsyncSession, params: ListingParams) -> PageView:
    return await listing_page(db, params, TaxRateRow, settings.PAGE_SIZE)
