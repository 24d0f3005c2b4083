import pytest

from core.security_headers import DEFAULT_POLICY, HeaderPolicy, HeaderRule
from middleware.security_headers import SecurityHeadersMiddleware, wrap_with_security_headers


def _http_scope(path="/"):
    return {"type": "http", "method": "GET", "path": path, "headers": []}


async def _receive():
    return {"type": "http.request", "body": b"", "more_body": False}


def _upstream_app(status=200, headers=None, body=b"hello", raise_after_start=False):
    async def app(scope, receive, send):
        await send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": headers if headers is not None else [],
            }
        )
        if raise_after_start:
            raise RuntimeError("handler crashed")
        await send({"type": "http.response.body", "body": body})

    return app


async def _run(app, scope=None):
    sent = []

    async def send(message):
        sent.append(message)

    await app(scope or _http_scope(), _receive, send)
    return sent


def _header_map(message):
    return {k.decode("latin-1"): v.decode("latin-1") for k, v in message["headers"]}


@pytest.mark.asyncio
async def test_strips_upstream_disclosure_headers():
    upstream = _upstream_app(
        headers=[
            (b"Server", b"Kestrel"),
            (b"X-Powered-By", b"ASP.NET"),
            (b"x-aspnet-version", b"4.0.30319"),
            (b"X-AspNetMvc-Version", b"5.2"),
            (b"content-type", b"text/plain"),
        ]
    )

    start, body = await _run(SecurityHeadersMiddleware(upstream))

    headers = _header_map(start)
    for name in ("server", "x-powered-by", "x-aspnet-version", "x-aspnetmvc-version"):
        assert name not in headers
    assert headers["content-type"] == "text/plain"
    assert body["body"] == b"hello"


@pytest.mark.asyncio
async def test_adds_fixed_headers_and_keeps_status():
    start, _ = await _run(SecurityHeadersMiddleware(_upstream_app(status=418)))

    headers = _header_map(start)
    assert start["status"] == 418
    for name, value in DEFAULT_POLICY.fixed.items():
        assert headers[name.lower()] == value


@pytest.mark.asyncio
async def test_start_message_without_headers_key():
    async def app(scope, receive, send):
        await send({"type": "http.response.start", "status": 204})
        await send({"type": "http.response.body", "body": b""})

    start, _ = await _run(SecurityHeadersMiddleware(app))

    assert _header_map(start)["x-content-type-options"] == "nosniff"


@pytest.mark.asyncio
async def test_nested_middleware_is_idempotent():
    upstream = _upstream_app(headers=[(b"server", b"uvicorn")])

    once, _ = await _run(SecurityHeadersMiddleware(upstream))
    twice, _ = await _run(SecurityHeadersMiddleware(SecurityHeadersMiddleware(upstream)))

    assert once["headers"] == twice["headers"]


@pytest.mark.asyncio
async def test_exception_still_propagates_after_headers_are_sent():
    app = SecurityHeadersMiddleware(_upstream_app(status=500, raise_after_start=True))
    sent = []

    async def send(message):
        sent.append(message)

    with pytest.raises(RuntimeError, match="handler crashed"):
        await app(_http_scope(), _receive, send)

    assert _header_map(sent[0])["x-frame-options"] == "deny"


@pytest.mark.asyncio
async def test_non_http_scopes_pass_through_untouched():
    seen = {}

    async def app(scope, receive, send):
        seen["send"] = send
        await send({"type": "lifespan.startup.complete"})

    async def send(message):
        seen["message"] = message

    await SecurityHeadersMiddleware(app)({"type": "lifespan"}, _receive, send)

    assert seen["send"] is send
    assert seen["message"] == {"type": "lifespan.startup.complete"}


@pytest.mark.asyncio
async def test_custom_policy():
    policy = HeaderPolicy.from_rules(
        [HeaderRule.remove("X-Debug"), HeaderRule.set_fixed("X-Frame-Options", "deny")]
    )
    upstream = _upstream_app(headers=[(b"x-debug", b"1"), (b"server", b"uvicorn")])

    start, _ = await _run(wrap_with_security_headers(upstream, policy))

    assert _header_map(start) == {"server": "uvicorn", "x-frame-options": "deny"}


def test_wiring_without_an_app_fails_fast():
    with pytest.raises(TypeError):
        SecurityHeadersMiddleware(None)


def test_wrapper_exposes_inner_app_attributes(admin_site):
    assert admin_site.state.site.name == "admin"
    assert admin_site.app.state is admin_site.state


@pytest.mark.asyncio
async def test_crash_before_response_start_still_sends_secured_500():
    async def app(scope, receive, send):
        raise RuntimeError("error page failed to render")

    sent = []

    async def send(message):
        sent.append(message)

    with pytest.raises(RuntimeError, match="error page failed to render"):
        await SecurityHeadersMiddleware(app)(_http_scope(), _receive, send)

    start, body = sent
    assert start["status"] == 500
    headers = _header_map(start)
    for name, value in DEFAULT_POLICY.fixed.items():
        assert headers[name.lower()] == value
    assert "server" not in headers
    assert body == {"type": "http.response.body", "body": b""}
