import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from jinja2 import TemplateError
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

logger = logging.getLogger(__name__)

# MySQL ER_NO_SUCH_TABLE and PostgreSQL undefined_table.
_MISSING_TABLE_ERRNO = 1146
_MISSING_TABLE_SQLSTATE = "42P01"
_MISSING_TABLE_MESSAGES = ("doesn't exist", "no such table")


class QueryError(Exception):
    """A database failure during a request, labelled with the failing stage."""

    def __init__(self, label: str, cause: SQLAlchemyError) -> None:
        self.label = label
        self.cause = cause
        super().__init__(f"{label}: {cause}")


def is_missing_table(exc: SQLAlchemyError) -> bool:
    """Return True when *exc* reports that the queried table does not exist."""
    if not isinstance(exc, DBAPIError):
        return False
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == _MISSING_TABLE_SQLSTATE:
        return True
    args = getattr(orig, "args", ())
    if args and args[0] == _MISSING_TABLE_ERRNO:
        return True
    message = str(orig).lower()
    return any(fragment in message for fragment in _MISSING_TABLE_MESSAGES)


async def query_error_handler(request: Request, exc: QueryError) -> PlainTextResponse:
    logger.debug("%s %s failed: %s", request.method, request.url.path, exc)
    return PlainTextResponse(str(exc), status_code=500)


async def template_error_handler(request: Request, exc: TemplateError) -> PlainTextResponse:
    logger.debug("Template render error on %s: %s", request.url.path, exc)
    return PlainTextResponse(f"Template render error: {exc}", status_code=500)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(QueryError, query_error_handler)
    app.add_exception_handler(TemplateError, template_error_handler)
