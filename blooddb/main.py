import logging
from datetime import datetime, timezone
from pathlib import Path

from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from blooddb.config import settings
from blooddb.database import SessionLocal, engine
from blooddb.errors import AppError, InternalFaultError
from blooddb.models import blood_request, donor, user  # noqa: F401
from blooddb.routers import auth, blood_requests, donors, profile
from blooddb.services.sessions import build_session_manager

app = FastAPI(title="BloodDB API", version="0.1.0")
logger = logging.getLogger(__name__)

allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    # Credentialed requests cannot use a wildcard origin.
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.session_manager = build_session_manager(SessionLocal)


def _assert_database_at_head() -> None:
    project_root = Path(__file__).resolve().parent.parent
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    script = ScriptDirectory.from_config(alembic_cfg)
    expected_heads = set(script.get_heads())

    with engine.connect() as connection:
        context = MigrationContext.configure(connection)
        current_heads = set(context.get_current_heads())

    if current_heads != expected_heads:
        raise RuntimeError(
            "Database schema is not at Alembic head. "
            "Run `alembic upgrade head` before starting the API. "
            f"Current revisions: {sorted(current_heads) or ['<none>']}, "
            f"expected: {sorted(expected_heads)}."
        )


@app.on_event("startup")
def startup_event():
    _assert_database_at_head()


@app.get("/")
def root():
    return {"statusCode": 200, "message": "Success", "data": {"status": "ok", "service": "blooddb"}}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "service": "blooddb",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def _error_name(status_code: int) -> str:
    if status_code == 400:
        return "BadRequest"
    if status_code == 401:
        return "Unauthorized"
    if status_code == 404:
        return "NotFound"
    if status_code == 405:
        return "MethodNotAllowed"
    if status_code >= 500:
        return "InternalServerError"
    return "HTTPError"


@app.exception_handler(AppError)
async def app_error_handler(_: Request, exc: AppError):
    content = {
        "statusCode": exc.status_code,
        "message": exc.message,
        "error": exc.error,
    }
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(HTTPException)
async def http_exception_handler(_: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "statusCode": exc.status_code,
            "message": str(exc.detail) if exc.detail else "Request failed",
            "error": _error_name(exc.status_code),
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "statusCode": 400,
            "message": "Invalid request payload",
            "error": "ValidationError",
            "details": {"errors": jsonable_encoder(exc.errors(), exclude={"input"})},
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(_: Request, exc: Exception):
    logger.exception("Unhandled server error: %s", type(exc).__name__)
    fault = InternalFaultError()
    return JSONResponse(
        status_code=fault.status_code,
        content={
            "statusCode": fault.status_code,
            "message": fault.message,
            "error": fault.error,
        },
    )


app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(donors.router)
app.include_router(donors.public_router)
app.include_router(blood_requests.router)
app.include_router(blood_requests.public_router)
