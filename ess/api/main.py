"""
FastAPI app assembly: logging, error mapping and router wiring.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.requests import Request
from starlette.responses import JSONResponse

from ess.utils.settings import get_settings

# Configure logging
LOG_LEVEL_NAME = get_settings().log_level
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)

from ess.api.evacuations import router as evacuations_router
from ess.api.supports import router as supports_router
from ess.errors import ServerError

# ServerError.error_type -> HTTP status
_ERROR_STATUS = {
    "NotFoundError": 404,
    "InvariantViolationError": 400,
    "UnsupportedTransitionError": 409,
    "NotSupportedError": 400,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    if get_settings().seed_reference_data:
        from ess.db.database import SessionLocal
        from ess.db.reference_data import seed_reference_data

        with SessionLocal() as db:
            seed_reference_data(db)
    yield


app = FastAPI(
    title="Evacuee Support Case Service",
    description="API for managing evacuation files, needs assessments and evacuee supports.",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(ServerError)
async def server_error_handler(request: Request, exc: ServerError):
    return JSONResponse(
        status_code=_ERROR_STATUS.get(exc.error_type, 500),
        content={
            "detail": exc.message,
            "error_type": exc.error_type,
            "correlation_id": str(exc.correlation_id),
        },
    )


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(evacuations_router)
app.include_router(supports_router)
