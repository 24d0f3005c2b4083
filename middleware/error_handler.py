from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Coroutine

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from sites.templating import render_page

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Custom Exception Hierarchy
# ---------------------------------------------------------------------------

class AppBaseException(Exception):
    """Base for all application-level exceptions."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# Error page content (GOV.UK pattern wording)
# ---------------------------------------------------------------------------

_PAGES: dict[int, tuple[str, str]] = {
    400: ("There is a problem", "The request could not be understood. Check it and try again."),
    404: ("Page not found", "If you typed the web address, check it is correct."),
    405: ("Method not allowed", "This page cannot be used in that way."),
    503: ("Sorry, the service is unavailable", "You will be able to use the service later."),
}
_DEFAULT_PAGE = ("Sorry, there is a problem with the service", "Try again later.")


def error_page_content(status_code: int) -> tuple[str, str]:
    return _PAGES.get(status_code, _DEFAULT_PAGE)


# ---------------------------------------------------------------------------
# Helper Utilities
# ---------------------------------------------------------------------------

def _get_request_id(request: Request) -> str:
    """Extract or generate a unique request ID."""
    return (
        request.headers.get("X-Request-ID")
        or request.headers.get("X-Correlation-ID")
        or str(uuid.uuid4())
    )


def _build_response(
    request: Request,
    *,
    http_status: int,
    exc: Exception | None = None,
    headers: dict[str, str] | None = None,
) -> Response:
    request_id = _get_request_id(request)
    heading, message = error_page_content(http_status)

    exception_type = None
    if exc is not None and http_status >= 500 and request.app.state.settings.is_development:
        exception_type = type(exc).__name__

    return render_page(
        request,
        "error.html",
        heading,
        status_code=http_status,
        headers={**(headers or {}), "X-Request-ID": request_id},
        heading=heading,
        message=message,
        request_id=request_id,
        exception_type=exception_type,
    )


def _log_error(
    request: Request,
    exc: Exception,
    *,
    level: int = logging.ERROR,
    include_traceback: bool = True,
) -> None:
    extra = {
        "request_id": _get_request_id(request),
        "method": request.method,
        "path": request.url.path,
        "client_host": request.client.host if request.client else "unknown",
        "exception_type": type(exc).__name__,
    }
    logger.log(
        level,
        "%s: %s",
        type(exc).__name__,
        exc,
        extra=extra,
        exc_info=exc if include_traceback and level >= logging.ERROR else None,
    )


# ---------------------------------------------------------------------------
# Optional Alert / Sentry Hook
# ---------------------------------------------------------------------------

AlertHook = Callable[[Request, Exception], Coroutine[Any, Any, None]]
_alert_hook: AlertHook | None = None


def register_alert_hook(hook: AlertHook | None) -> None:
    """Register an async callable that receives (request, exc) for critical errors."""
    global _alert_hook
    _alert_hook = hook


async def _maybe_alert(request: Request, exc: Exception) -> None:
    if _alert_hook:
        try:
            await _alert_hook(request, exc)
        except Exception as hook_exc:
            logger.warning("Alert hook raised an exception: %s", hook_exc)


# ---------------------------------------------------------------------------
# Exception Handlers
# ---------------------------------------------------------------------------

async def _handle_app_exception(request: Request, exc: AppBaseException) -> Response:
    _log_error(request, exc, level=logging.WARNING, include_traceback=False)
    if exc.http_status >= 500:
        await _maybe_alert(request, exc)
    return _build_response(request, http_status=exc.http_status, exc=exc)


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> Response:
    _log_error(request, exc, level=logging.INFO, include_traceback=False)
    return _build_response(request, http_status=exc.status_code, headers=exc.headers)


async def _handle_validation_exception(
    request: Request, exc: RequestValidationError
) -> Response:
    _log_error(request, exc, level=logging.INFO, include_traceback=False)
    return _build_response(request, http_status=status.HTTP_400_BAD_REQUEST)


async def _handle_unhandled_exception(request: Request, exc: Exception) -> Response:
    _log_error(request, exc, level=logging.ERROR, include_traceback=True)
    await _maybe_alert(request, exc)
    return _build_response(
        request, http_status=status.HTTP_500_INTERNAL_SERVER_ERROR, exc=exc
    )


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def add_exception_handlers(app: FastAPI) -> None:
    """
    Register the HTML error page handlers on a site.

    The catch-all ``Exception`` handler is served by Starlette's
    ServerErrorMiddleware, which is why the security headers middleware has
    to wrap the whole application rather than be added with ``add_middleware``.
    """
    app.add_exception_handler(AppBaseException, _handle_app_exception)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(RequestValidationError, _handle_validation_exception)
    app.add_exception_handler(Exception, _handle_unhandled_exception)
