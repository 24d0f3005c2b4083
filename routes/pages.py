from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from middleware.error_handler import error_page_content
from sites.templating import render_page

router = APIRouter()


@router.get("/", response_class=HTMLResponse, summary="Home page")
async def home(request: Request):
    return render_page(request, "index.html", "Home")


@router.get("/privacy", response_class=HTMLResponse, summary="Privacy notice")
async def privacy(request: Request):
    return render_page(request, "privacy.html", "Privacy")


@router.get("/error", response_class=HTMLResponse, summary="Generic error page")
async def error(request: Request):
    heading, message = error_page_content(500)
    return render_page(
        request,
        "error.html",
        heading,
        heading=heading,
        message=message,
    )
