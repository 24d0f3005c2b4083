"""
Security headers middleware (pure ASGI).

Must be the outermost layer of a site so the policy reaches every response:
pages, static files, router 404/405s and the 500 page rendered by
Starlette's ServerErrorMiddleware. ``BaseHTTPMiddleware`` sits inside
ServerErrorMiddleware, so it cannot see that last case.
"""

from __future__ import annotations

import logging
from typing import Any

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.security_headers import DEFAULT_POLICY, HeaderPolicy, apply_security_headers

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware:
    """Rewrites the headers of every HTTP response against a ``HeaderPolicy``."""

    def __init__(self, app: ASGIApp, policy: HeaderPolicy = DEFAULT_POLICY) -> None:
        if app is None:
            raise TypeError("SecurityHeadersMiddleware requires an ASGI application")
        if policy is None:
            raise TypeError("SecurityHeadersMiddleware requires a HeaderPolicy")
        self.app = app
        self.policy = policy

    def __getattr__(self, name: str) -> Any:
        # Lets callers reach app.state, app.routes, ... through the wrapper.
        if name in ("app", "policy"):
            raise AttributeError(name)
        return getattr(self.app, name)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        policy = self.policy
        response_started = False

        async def send_with_headers(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
                # ASGI header names should already be lower-case; normalise so
                # the case-insensitive lookups also catch non-conforming apps.
                message["headers"] = [
                    (name.lower(), value) for name, value in message.get("headers", [])
                ]
                apply_security_headers(MutableHeaders(scope=message), policy)
            await send(message)

        try:
            await self.app(scope, receive, send_with_headers)
        except Exception:
            if not response_started:
                # Nothing reached the client; send the 500 the server would
                # otherwise emit bare, with the policy applied.
                await send_with_headers(
                    {"type": "http.response.start", "status": 500, "headers": []}
                )
                await send({"type": "http.response.body", "body": b""})
            raise


def wrap_with_security_headers(
    app: ASGIApp, policy: HeaderPolicy = DEFAULT_POLICY
) -> SecurityHeadersMiddleware:
    """Return ``app`` wrapped so the header policy is its outermost stage."""
    wrapped = SecurityHeadersMiddleware(app, policy)
    logger.debug(
        "Security headers middleware installed",
        extra={"removed": sorted(policy.removals), "fixed": len(policy.fixed)},
    )
    return wrapped
