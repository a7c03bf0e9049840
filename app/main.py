import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import config
from app.core.db import Base, load_models
from app.core.db.engine import check_database_connection, engine
from app.core.error_handler import global_exception_handler
from app.core.response_interceptor import (
    SuccessResponseInterceptor,
    CustomAPIRoute,
    skip_interceptor,
)
from app.modules.reports import router as reports_router

# Configure logging to output to console
logging.basicConfig(
    level=config.log_level.upper(),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


load_models()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.auto_create_tables:
        database = engine.url.database
        if engine.url.drivername.startswith("sqlite") and database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ready")
    logger.info("Achot API started")
    yield
    await engine.dispose()
    logger.info("Achot API stopped")


app = FastAPI(
    title="Achot API",
    description="Daily financial reports: report groups, rows, totals and exports",
    version="1.0.0",
    lifespan=lifespan,
)

# Override the default route class to support skip_interceptor decorator
app.router.route_class = CustomAPIRoute

app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

# Must be added after CORS
app.add_middleware(SuccessResponseInterceptor)

app.include_router(reports_router, prefix="/api")


@app.get("/api/health")
@skip_interceptor
async def health():
    """Liveness plus a database round trip; the editor pings this at start-up."""
    if not await check_database_connection():
        return JSONResponse(status_code=503, content={"success": False, "detail": "Database unavailable"})
    return {"status": "ok"}
