from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from gateadmin.database import get_db
from gateadmin.dependencies import ListingParams, tax_rate_params
from gateadmin.services import tax_rate_service
from gateadmin.templating import templates

router = APIRouter(tags=["tax-rates"])


@router.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    params: ListingParams = Depends(tax_rate_params),
    db: AsyncSession = Depends(get_db),
):
    view = await tax_rate_service.get_tax_rate_page(db, params)
    return templates.TemplateResponse(request, "home.html", {"view": view})
