"""
ASGI entry points for the admin and demo sites.

Run both sites with ``python apphost.py``. It starts uvicorn with
``server_header=False``. Serving one site directly, e.g.
``uvicorn main:admin_app``, makes uvicorn add ``server: uvicorn`` to every
response after the security headers middleware has run. Pass
``--no-server-header`` when doing that.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from config import Settings, get_settings
from config_validator import validate_env
from core.logging_config import setup_logging
from core.sentry_config import init_sentry, sentry_alert_hook
from middleware.error_handler import add_exception_handlers, register_alert_hook
from middleware.security_headers import SecurityHeadersMiddleware, wrap_with_security_headers
from routes import health, pages
from sites.site_config import ADMIN_SITE, DEMO_SITE, SiteConfig

logger = logging.getLogger(__name__)

STATIC_MOUNTS = ("css", "js", "assets")


# ---------------------------------------------------------------------------
# Application Factory
# ---------------------------------------------------------------------------


def create_site(site: SiteConfig, settings: Settings) -> SecurityHeadersMiddleware:
    """
    Build one site and return it wrapped in the security headers middleware.

    The wrapper is the outermost ASGI stage: it sees the responses of routes,
    static files and every error handler, including the 500 page.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Site starting",
            extra={"site": site.name, "environment": settings.environment, "version": settings.version},
        )
        yield
        logger.info("Site shutting down", extra={"site": site.name})

    application = FastAPI(
        title=site.title,
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )
    application.state.site = site
    application.state.settings = settings

    # -------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------

    add_exception_handlers(application)

    # -------------------------------------------------------------------
    # Routers
    # -------------------------------------------------------------------

    application.include_router(pages.router, tags=["Pages"])
    application.include_router(health.router)

    # -------------------------------------------------------------------
    # Static assets (GET/HEAD only; StaticFiles answers anything else with 405)
    # -------------------------------------------------------------------

    for folder in STATIC_MOUNTS:
        application.mount(
            f"/{folder}",
            StaticFiles(directory=site.static_dir / folder),
            name=folder,
        )

    return wrap_with_security_headers(application)


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------


def bootstrap() -> Settings:
    """Validate settings, then configure logging and error reporting."""
    settings = validate_env(get_settings())
    setup_logging(
        level=settings.log_level,
        json_output=settings.log_json,
        log_file=settings.log_file,
    )
    if init_sentry(settings):
        register_alert_hook(sentry_alert_hook)
    return settings


settings = bootstrap()

admin_app = create_site(ADMIN_SITE, settings)
demosite_app = create_site(DEMO_SITE, settings)
