from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from gateadmin.database import get_db
from gateadmin.services import gate_service
from gateadmin.templating import templates

router = APIRouter(tags=["gates"])


@router.get("/mnp-gates", response_class=HTMLResponse)
async def gates_page(request: Request, db: AsyncSession = Depends(get_db)):
    gates = await gate_service.list_gates(db)
    return templates.TemplateResponse(request, "mnp_gates.html", {"gates": gates})
