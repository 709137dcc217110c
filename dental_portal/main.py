from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dental_portal.api.guard import access_guard_middleware
from dental_portal.api.routes.admin import router as admin_router
from dental_portal.api.routes.auth import router as auth_router
from dental_portal.api.routes.certificates import router as certificates_router
from dental_portal.api.routes.courses import router as courses_router
from dental_portal.api.routes.health import router as health_router
from dental_portal.api.routes.profile import router as profile_router
from dental_portal.core.config import Settings
from dental_portal.core.config import settings as default_settings
from dental_portal.core.exceptions import PortalError
from dental_portal.core.logging_config import setup_logging
from dental_portal.core.security import TokenService
from dental_portal.db.session import Database
from dental_portal.services.mail_service import build_mailer
from dental_portal.services.user_service import ensure_admin_user

logger = logging.getLogger(__name__)


def envelope(request_id: str, data: Any = None, error: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {"request_id": request_id, "data": data, "error": error}


def _validation_errors(exc: RequestValidationError):
    # pydantic v2 puts the raised exception object under ctx.error
    return jsonable_encoder(exc.errors(), custom_encoder={Exception: str})


def _bootstrap_admin(database: Database, settings: Settings) -> None:
    if not (settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD):
        return
    db = database.session()
    try:
        user = ensure_admin_user(db, email=settings.ADMIN_EMAIL, password=settings.ADMIN_PASSWORD, name=settings.ADMIN_NAME)
        logger.info("Bootstrap admin ready (id=%s)", user.id)
    finally:
        db.close()


def create_app(settings: Optional[Settings] = None, mailer=None) -> FastAPI:
    """Build the portal application.

    ``settings`` and ``mailer`` can be injected (tests do both); otherwise
    the process-wide settings and an SMTP or logging mailer are used.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.LOG_LEVEL)

        # Fails fast on missing or shared secrets
        app.state.tokens = TokenService.from_settings(settings)

        database = Database(settings.DATABASE_URL)
        app.state.database = database
        if settings.CREATE_TABLES_ON_STARTUP:
            database.create_all()

        app.state.mailer = mailer if mailer is not None else build_mailer(settings)
        _bootstrap_admin(database, settings)

        logger.info("%s started (env=%s)", settings.APP_NAME, settings.ENV)
        try:
            yield
        finally:
            database.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Registered innermost first: guard, then request id, then CORS outermost
    app.middleware("http")(access_guard_middleware)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        req_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = req_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = req_id
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PortalError)
    async def portal_exception_handler(request: Request, exc: PortalError):
        req_id = getattr(request.state, "request_id", str(uuid.uuid4()))
        return JSONResponse(
            status_code=exc.status_code,
            content=envelope(
                request_id=req_id,
                data=None,
                error={"code": exc.code, "message": exc.message},
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        req_id = getattr(request.state, "request_id", str(uuid.uuid4()))

        detail = exc.detail
        if isinstance(detail, dict):
            code = str(detail.get("code") or "HTTP_ERROR")
            message = detail.get("message") or str(detail)
            error = {"code": code, "message": message, "details": detail}
        else:
            error = {"code": "HTTP_ERROR", "message": str(detail)}

        return JSONResponse(
            status_code=exc.status_code,
            content=envelope(request_id=req_id, data=None, error=error),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        req_id = getattr(request.state, "request_id", str(uuid.uuid4()))
        return JSONResponse(
            status_code=422,
            content=envelope(
                request_id=req_id,
                data=None,
                error={
                    "code": "VALIDATION_ERROR",
                    "message": "Invalid request",
                    "details": {"errors": _validation_errors(exc)},
                },
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        req_id = getattr(request.state, "request_id", str(uuid.uuid4()))
        logger.exception("Unhandled error on %s %s (request_id=%s)", request.method, request.url.path, req_id)
        return JSONResponse(
            status_code=500,
            content=envelope(
                request_id=req_id,
                data=None,
                error={"code": "INTERNAL_ERROR", "message": "Internal server error"},
            ),
        )

    app.include_router(health_router, prefix="/api")
    app.include_router(auth_router, prefix="/api")
    app.include_router(courses_router, prefix="/api")
    app.include_router(profile_router, prefix="/api")
    app.include_router(certificates_router, prefix="/api")
    app.include_router(admin_router, prefix="/api")

    return app


app = create_app()
