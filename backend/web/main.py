"Classroom service"
from __future__ import annotations

import logging
import os
import sys

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.classrooms.errors import ClassroomServiceError, Unauthenticated
from backend.identity_access.tokens import AccessTokenError, extract_token, verify_access_token
from backend.web import config as _cfg
from backend.web.routes.classrooms import classrooms_router
from backend.web.routes.operations import operations_router


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via CLASSROOM_ENABLE_DOTENV (default true
      outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("CLASSROOM_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    from dotenv import load_dotenv

    load_dotenv()

# Minimal production safety checks (fail-fast on insecure config)
_cfg.ensure_secure_config_on_startup()


def configure_logging() -> None:
    """Attach a stream handler to the `classroom_service` logger tree once."""
    root = logging.getLogger("classroom_service")
    level = (os.getenv("LOG_LEVEL", "INFO") or "INFO").strip().upper()
    root.setLevel(getattr(logging, level, logging.INFO))
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)


configure_logging()
logger = logging.getLogger("classroom_service.web")

app = FastAPI(
    title="Classroom service",
    description="Classrooms, rosters, content, forum and schedule events per tenant",
    version="0.1.0",
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url=None,
)

# --- Errors ---------------------------------------------------------------------

_NO_STORE = {"Cache-Control": "private, no-store"}


@app.exception_handler(ClassroomServiceError)
async def classroom_error_handler(request: Request, exc: ClassroomServiceError):
    return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=_NO_STORE)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Body shape errors are client errors like any other missing parameter.
    return JSONResponse(
        {"error": "bad_request", "message": "Invalid request body", "detail": "invalid_body"},
        status_code=400,
        headers=_NO_STORE,
    )


# --- Auth middleware ------------------------------------------------------------

def _is_public_path(path: str) -> bool:
    return path in ("/health", "/api/docs", "/api/openapi.json") or path.startswith("/api/docs/")


def _is_protected_path(path: str) -> bool:
    return path.startswith(("/api/", "/internal/"))


@app.middleware("http")
async def auth_enforcement(request: Request, call_next):
    path = request.url.path
    if _is_public_path(path) or not _is_protected_path(path):
        return await call_next(request)

    token = extract_token(request.headers.get("authorization"), request.cookies)
    if not token:
        return JSONResponse(Unauthenticated().to_dict(), status_code=401, headers=_NO_STORE)
    try:
        request.state.caller = verify_access_token(token)
    except AccessTokenError as exc:
        if exc.code == "secret_unconfigured":
            logger.error("JWT_SECRET is not configured; rejecting request")
        else:
            logger.debug("access token rejected: reason=%s", exc.code)
        return JSONResponse(Unauthenticated(detail=exc.code).to_dict(), status_code=401, headers=_NO_STORE)
    return await call_next(request)


# --- Security Headers Middleware ------------------------------------------------

@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    return response


app.include_router(classrooms_router)
app.include_router(operations_router)
