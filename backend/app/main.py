import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.settings import settings, validate_settings
from app.db.session import SessionLocal, engine
from app.deps import get_request_id
from app.models import Base
from app.routers.audit import router as audit_router
from app.routers.auth import router as auth_router
from app.routers.budgets import patient_router as patient_budgets_router, router as budgets_router
from app.routers.config import router as config_router
from app.routers.me import router as me_router
from app.routers.odontogram import router as odontogram_router
from app.routers.patients import router as patients_router
from app.routers.treatments import router as treatments_router
from app.routers.users import router as users_router
from app.services.users import seed_initial_admin

logger = logging.getLogger("dental_clinic.startup")


def _prepare_database() -> None:
    Base.metadata.create_all(bind=engine)
    admin_email = str(settings.admin_email)
    with SessionLocal() as db:
        admin = seed_initial_admin(db, email=admin_email, password=settings.admin_password.strip())
    if admin is not None:
        logger.info("Initial admin %s created; password change required on first login.", admin_email)
    else:
        logger.info("Users already present; skipping admin seed.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    validate_settings(settings)
    _prepare_database()
    logger.info("%s API ready (env=%s)", settings.clinic_name, settings.app_env)
    yield


app = FastAPI(title="Dental Clinic API", version="0.1.0", lifespan=lifespan)


@app.middleware("http")
async def propagate_request_id(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-Id"] = request_id
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = get_request_id(request) or request.headers.get("x-request-id") or uuid.uuid4().hex
    logger.exception("Unhandled server error", extra={"request_id": request_id})
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "request_id": request_id},
        headers={"X-Request-Id": request_id},
    )


@app.get("/health")
def health():
    return {"status": "ok"}


for router in (
    auth_router,
    me_router,
    users_router,
    patients_router,
    treatments_router,
    odontogram_router,
    patient_budgets_router,
    budgets_router,
    audit_router,
    config_router,
):
    app.include_router(router)
