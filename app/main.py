"""
FastAPI application entrypoint.

Run locally:  uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.routes import router
from app.config import settings
from app.errors import APSError
from app.models.database import close_db, init_db

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s | %(name)s | %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Base de datos lista (%s)", settings.ENVIRONMENT)
    yield
    close_db()


app = FastAPI(
    title="Salud Digital APS API",
    description=(
        "Primary-care record keeping: families and their members, family "
        "characterization, care plans, induced demands, clinical visits and "
        "the care team's field activity log."
    ),
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(APSError)
def handle_aps_error(request: Request, exc: APSError):
    content = {"error": exc.message}
    if exc.details:
        content["detalles"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
def handle_request_validation(request: Request, exc: RequestValidationError):
    detalles = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"] if part != "body")
        detalles.append(f"{location}: {error['msg']}" if location else error["msg"])
    return JSONResponse(status_code=400, content={"error": "Datos inválidos", "detalles": detalles})


# Legacy clients call /api; newer ones /api/v1. Same handlers behind both.
app.include_router(router, prefix="/api")
app.include_router(router, prefix="/api/v1")
