from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from sites.site_config import TEMPLATES_DIR, SiteConfig

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def current_site(request: Request) -> SiteConfig:
    return request.app.state.site


def render_page(
    request: Request,
    template: str,
    page_title: str,
    *,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
    **context: Any,
) -> Response:
    """Render ``template`` inside the GOV.UK layout of the current site."""
    return templates.TemplateResponse(
        request,
        template,
        {"site": current_site(request), "page_title": page_title, **context},
        status_code=status_code,
        headers=headers,
    )
