import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from physiotrack.core.errors import ClinicError, DataAccessError
from physiotrack.core.logging import configure_logging
from physiotrack.core.settings import settings, validate_settings
from physiotrack.db.session import engine
from physiotrack.models import Base
from physiotrack.routers.dashboard import router as dashboard_router
from physiotrack.routers.inventory import router as inventory_router
from physiotrack.routers.patients import router as patients_router
from physiotrack.routers.payments import router as payments_router
from physiotrack.routers.visits import router as visits_router

app = FastAPI(title="PhysioTrack API", version="0.1.0")
logger = logging.getLogger("physiotrack.startup")
error_logger = logging.getLogger("physiotrack.errors")


def _error_payload(request: Request, payload: dict) -> dict:
    request_id = request.headers.get("x-request-id")
    if request_id:
        payload["request_id"] = request_id
    return payload


@app.exception_handler(ClinicError)
async def clinic_error_handler(request: Request, exc: ClinicError):
    if exc.status_code >= 500:
        error_logger.error("Request failed: %s", exc.detail, extra={"path": request.url.path})
    return JSONResponse(status_code=exc.status_code, content=_error_payload(request, exc.to_payload()))


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    error_logger.exception("Database error", extra={"path": request.url.path})
    wrapped = DataAccessError()
    return JSONResponse(
        status_code=wrapped.status_code, content=_error_payload(request, wrapped.to_payload())
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    error_logger.exception(
        "Unhandled server error", extra={"request_id": request.headers.get("x-request-id")}
    )
    return JSONResponse(
        status_code=500, content=_error_payload(request, {"detail": "Internal server error"})
    )


@app.on_event("startup")
def startup():
    configure_logging(settings.log_level)
    validate_settings(settings)
    if settings.create_schema_on_startup:
        Base.metadata.create_all(bind=engine)
        logger.info("Database schema ensured.")
    logger.info(
        "PhysioTrack API started (env=%s, timezone=%s).", settings.app_env, settings.clinic_timezone
    )


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(patients_router)
app.include_router(visits_router)
app.include_router(payments_router)
app.include_router(inventory_router)
app.include_router(dashboard_router)
