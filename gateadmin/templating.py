import json
from typing import Any

from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates

from gateadmin.config import settings


def seq(start: int, end: int) -> list[int]:
    """Inclusive integer range; empty when *end* < *start*."""
    if end < start:
        return []
    return list(range(start, end + 1))


templates = Jinja2Templates(directory=settings.TEMPLATE_DIR)
templates.env.globals["seq"] = seq


class PrettyJSONResponse(JSONResponse):
    """
    Strict JSON body indented by two spaces, encoded in full before sending.

    Non-finite floats raise ``ValueError`` instead of emitting ``NaN``.
    """

    media_type = "application/json; charset=utf-8"

    def render(self, content: Any) -> bytes:
        body = json.dumps(content, ensure_ascii=False, allow_nan=False, indent=2)
        return (body + "\n").encode("utf-8")
