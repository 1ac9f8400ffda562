from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from gateadmin.database import get_db
from gateadmin.dependencies import ListingParams, gate_config_params
from gateadmin.services import gate_config_service
from gateadmin.templating import PrettyJSONResponse, templates

router = APIRouter(tags=["gate-configs"])


@router.get("/mnp-gate", response_class=HTMLResponse)
async def gate_config_list(request: Request, db: AsyncSession = Depends(get_db)):
    configs = await gate_config_service.list_configs(db)
    return templates.TemplateResponse(request, "mnp_gate.html", {"configs": configs})


@router.get("/mnp-gate/browse", response_class=HTMLResponse)
async def gate_config_browse(
    request: Request,
    params: ListingParams = Depends(gate_config_params),
    db: AsyncSession = Depends(get_db),
):
    view = await gate_config_service.get_gate_config_page(db, params)
    return templates.TemplateResponse(request, "mnp_gate_browse.html", {"view": view})


@router.get("/mnp-gate.json")
async def export_gate_configs(db: AsyncSession = Depends(get_db)):
    configs = await gate_config_service.export_configs(db)
    try:
        # Encoded eagerly: a failure here happens before any byte is sent.
        return PrettyJSONResponse([c.to_json_dict() for c in configs])
    except (TypeError, ValueError) as exc:
        return PlainTextResponse(f"JSON encode error: {exc}", status_code=500)
