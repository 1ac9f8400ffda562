import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text

from gateadmin.database import engine
from gateadmin.errors import install_error_handlers
from gateadmin.middleware import RequestDiagnosticsMiddleware
from gateadmin.routers import gate_configs, gates, tax_rates

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: an unreachable database aborts the process.
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.critical("db connect: %s", exc)
        raise
    logger.info("Database connection established")
    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title="Gate Admin",
    description="Read-only admin views over tax-rate and MNP gateway tables",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestDiagnosticsMiddleware)

install_error_handlers(app)

# Routers
app.include_router(tax_rates.router)
app.include_router(gate_configs.router)
app.include_router(gates.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}
