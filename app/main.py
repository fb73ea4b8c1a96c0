from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api.routes import (
    access,
    admin_content,
    admin_courses,
    admin_users,
    courses,
    enrollments,
    lessons,
    me,
    payments,
    webhooks,
)
from app.core.config import get_settings
from app.core.error_codes import ErrorCode
from app.core.errors import ApiError
from app.core.logging import configure_logging, get_logger
from app.db.seed import seed_if_needed
from app.db.session import SessionLocal

settings = get_settings()
configure_logging(settings)
logger = get_logger(__name__)

app = FastAPI(title=settings.app_name, version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ApiError)
async def handle_api_error(_, exc: ApiError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message}},
    )


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(_, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return JSONResponse(
        status_code=400,
        content={"error": {"code": ErrorCode.VALIDATION_ERROR, "message": message}},
    )


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.on_event("startup")
def on_startup() -> None:
    if settings.app_env == "production" and settings.auth_dev_secret == "change-me" and not settings.auth_jwks_url:
        raise RuntimeError("AUTH_JWKS_URL or AUTH_DEV_SECRET must be configured in production")

    if not settings.payments_enabled:
        logger.warning("payments_not_configured")

    if settings.seed_data:
        try:
            with SessionLocal() as db:
                seed_if_needed(db)
        except SQLAlchemyError as exc:
            raise RuntimeError("Database schema is not ready. Run: alembic upgrade head") from exc


app.include_router(me.router)
app.include_router(courses.router)
app.include_router(enrollments.router)
app.include_router(access.router)
app.include_router(payments.router)
app.include_router(lessons.router)
app.include_router(webhooks.router)
app.include_router(admin_courses.router)
app.include_router(admin_content.router)
app.include_router(admin_users.router)
