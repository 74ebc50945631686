"""Public, non-API routes: service info, health and short URL redirects."""

import os
from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from ephemera.database.models import ClientMeta
from ephemera.errors import NotFoundError

from ..api.schemas import HealthResponse

router = APIRouter()

template_dir = os.path.join(os.path.dirname(__file__), "..", "templates")
templates = Jinja2Templates(directory=template_dir)


@router.get("/", include_in_schema=False)
async def root():
    """Service info."""
    return {
        "message": "ephemera api",
        "version": "1.0",
        "endpoints": {
            "health": "/health",
            "upload": "POST /api/upload",
            "note": "POST /api/note",
            "content": "GET /api/content/{id}",
            "shorten": "POST /api/shorten",
            "redirect": "GET /s/{code}",
        },
    }


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health_check(request: Request):
    """Health check endpoint for load balancers and monitoring."""
    db = request.app.state.db
    healthy = await db.health_check()

    body = HealthResponse(
        status="ok" if healthy else "unhealthy",
        database="healthy" if healthy else "unhealthy",
        timestamp=datetime.now(timezone.utc),
    )
    if healthy:
        return body
    return JSONResponse(
        content=body.model_dump(mode="json", by_alias=True),
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


@router.get("/s/{short_code}", include_in_schema=False)
async def redirect_to_url(request: Request, short_code: str):
    """Redirect to the original URL, recording the click."""
    service = request.app.state.url_service

    client = ClientMeta(
        ip_address=getattr(request.state, "client_ip", "") or "",
        user_agent=request.headers.get("user-agent", ""),
        referrer=request.headers.get("referer", ""),
    )

    try:
        original_url = await service.redirect(short_code, client)
    except NotFoundError:
        return templates.TemplateResponse(
            request,
            "not_found.html",
            {"message": "Short URL not found or expired"},
            status_code=status.HTTP_404_NOT_FOUND,
        )

    return RedirectResponse(url=original_url, status_code=status.HTTP_301_MOVED_PERMANENTLY)
