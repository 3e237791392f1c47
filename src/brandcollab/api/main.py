"""FastAPI application for the BrandCollab marketplace."""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from brandcollab import __version__
from brandcollab.api.rate_limit import limiter
from brandcollab.api.v1.admin import router as admin_router
from brandcollab.api.v1.auth import router as auth_router
from brandcollab.api.v1.brand import router as brand_router
from brandcollab.api.v1.campaigns import router as campaigns_router
from brandcollab.api.v1.devices import router as devices_router
from brandcollab.api.v1.influencer import router as influencer_router
from brandcollab.api.v1.master_data import router as master_data_router
from brandcollab.api.v1.webhooks import router as webhooks_router
from brandcollab.errors import ServiceError
from brandcollab.logging_config import bind_request_context, get_logger, setup_logging
from brandcollab.settings import settings
from brandcollab.storage.db import db

logger = get_logger(__name__)

API_PREFIX = "/api/v1"

_SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Permissions-Policy": "camera=(), geolocation=(), microphone=(), payment=()",
}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id for log correlation and add security headers."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        bind_request_context(request_id=request_id, path=request.url.path)

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        for name, value in _SECURITY_HEADERS.items():
            response.headers[name] = value
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("app_starting", env=settings.env, version=__version__)
    db.create_tables()
    yield
    logger.info("app_shutting_down")


def _cors_origins() -> list[str]:
    origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
    if settings.env == "production" and "*" in origins:
        logger.error("cors_wildcard_blocked")
        return [o for o in origins if o != "*"]
    return origins


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning("rate_limited", limit=str(exc.detail))
        return JSONResponse(status_code=429, content={"detail": "Too many requests. Please try again later."})

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error("service_error", error=exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Build the API application.

    Docs are only served outside production. Every router lives under
    ``/api/v1``; ``/health`` stays at the root for the load balancer.
    """
    setup_logging()
    show_docs = settings.env != "production"

    app = FastAPI(
        title="BrandCollab API",
        description="Influencer and brand collaboration marketplace API",
        version=__version__,
        docs_url=f"{API_PREFIX}/docs" if show_docs else None,
        redoc_url=None,
        openapi_url=f"{API_PREFIX}/openapi.json" if show_docs else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
        max_age=3600,
    )
    app.state.limiter = limiter
    _register_error_handlers(app)

    for router in (
        auth_router,
        influencer_router,
        brand_router,
        campaigns_router,
        admin_router,
        master_data_router,
        devices_router,
        webhooks_router,
    ):
        app.include_router(router, prefix=API_PREFIX)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": __version__, "env": settings.env}

    return app


app = create_app()
