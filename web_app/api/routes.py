"""API routes implementation."""

from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from fastapi.responses import FileResponse

from ephemera.common.url_builder import build_download_path
from ephemera.database.models import ContentKind
from ephemera.errors import BadRequestError, NotFoundError

from .admin import require_admin
from .schemas import (
    AdminContentItem,
    AdminListResponse,
    ClickResponse,
    ContentResponse,
    ContentStatsResponse,
    ErrorResponse,
    MessageResponse,
    NoteRequest,
    NoteResponse,
    ShortenRequest,
    ShortenResponse,
    SweepResponse,
    UploadResponse,
    URLStatsResponse,
)

router = APIRouter()

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    404: {"model": ErrorResponse, "description": "Not found or expired"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}
_ADMIN_ERRORS = {
    401: {"model": ErrorResponse, "description": "Wrong admin secret"},
    403: {"model": ErrorResponse, "description": "Admin endpoints disabled"},
}


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses=_ERRORS,
    summary="Upload a file",
)
async def upload_file(request: Request, file: UploadFile = File(...)):
    """Store an uploaded file until it expires."""
    service = request.app.state.content_service

    # Starlette counts bytes while spooling, so oversized uploads are rejected unread.
    if file.size is not None:
        service.check_upload_size(file.size)

    data = await file.read()
    content = await service.upload_file(
        data,
        file.filename or "",
        size=file.size if file.size is not None else len(data),
    )

    return UploadResponse(
        id=content.id,
        filename=content.filename,
        size=content.size,
        expires_at=content.expires_at,
    )


@router.post(
    "/note",
    response_model=NoteResponse,
    response_model_exclude_none=True,
    responses=_ERRORS,
    summary="Create a note",
)
async def create_note(request: Request, body: NoteRequest):
    """Store a text note until it expires."""
    service = request.app.state.content_service

    content = await service.create_note(body.content, title=body.title)

    return NoteResponse(id=content.id, title=content.title, expires_at=content.expires_at)


@router.get(
    "/content/{content_id}",
    response_model=ContentResponse,
    response_model_exclude_none=True,
    responses=_ERRORS,
    summary="Get content",
)
async def get_content(request: Request, content_id: str):
    """Get a note, or the metadata of a file. Counts one view."""
    service = request.app.state.content_service

    content = await service.get_content(content_id)

    if content.kind is ContentKind.NOTE:
        return ContentResponse(type=content.kind.value, title=content.title, content=content.body)

    if not service.storage.exists(content.storage_path):
        raise NotFoundError("file not found")

    return ContentResponse(
        type=content.kind.value,
        filename=content.filename,
        size=content.size,
        download_url=build_download_path(content.id),
    )


@router.get(
    "/content/{content_id}/download",
    response_class=FileResponse,
    responses=_ERRORS,
    summary="Download a file",
)
async def download_content(request: Request, content_id: str):
    """Stream the backing file of file content."""
    service = request.app.state.content_service

    content = await service.get_content(content_id)

    if content.kind is not ContentKind.FILE:
        raise BadRequestError("content is not a file")
    if not service.storage.exists(content.storage_path):
        raise NotFoundError("file not found")

    return FileResponse(
        content.storage_path,
        filename=content.filename or "download",
        media_type="application/octet-stream",
    )


@router.get(
    "/stats/{content_id}",
    response_model=ContentStatsResponse,
    responses=_ERRORS,
    summary="Get content statistics",
)
async def get_content_stats(request: Request, content_id: str):
    """View count and lifetime of content, expired or not."""
    service = request.app.state.content_service

    stats = await service.get_stats(content_id)

    return ContentStatsResponse(
        view_count=stats.view_count,
        created_at=stats.created_at,
        expires_at=stats.expires_at,
    )


@router.delete(
    "/content/{content_id}",
    response_model=MessageResponse,
    responses={**_ERRORS, **_ADMIN_ERRORS},
    dependencies=[Depends(require_admin)],
    summary="Delete content",
)
async def delete_content(request: Request, content_id: str):
    """Soft delete content (admin)."""
    await request.app.state.content_service.delete_content(content_id)
    return MessageResponse(message="content deleted successfully")


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses={**_ERRORS, 409: {"model": ErrorResponse, "description": "Custom alias already taken"}},
    summary="Create short URL",
    description="Create a shortened URL. Optionally provide a custom alias and an expiry in days.",
)
async def shorten_url(request: Request, body: ShortenRequest):
    """Create a shortened URL."""
    service = request.app.state.url_service

    record = await service.shorten(
        body.url,
        custom_alias=body.custom_alias,
        expires_in_days=body.expires_in,
    )

    return ShortenResponse(
        id=record.id,
        short_code=record.short_code,
        short_url=service.short_url(record.short_code),
        original_url=record.original_url,
        created_at=record.created_at,
        expires_at=record.expires_at,
    )


@router.get(
    "/shorten/{short_code}/stats",
    response_model=URLStatsResponse,
    responses=_ERRORS,
    summary="Get URL statistics",
)
async def get_url_stats(request: Request, short_code: str):
    """Click count and the most recent clicks of a short URL."""
    service = request.app.state.url_service

    stats = await service.get_stats(short_code)

    return URLStatsResponse(
        short_code=stats.url.short_code,
        original_url=stats.url.original_url,
        click_count=stats.url.click_count,
        created_at=stats.url.created_at,
        expires_at=stats.url.expires_at,
        recent_clicks=[
            ClickResponse(
                id=click.id,
                url_id=click.url_id,
                clicked_at=click.clicked_at,
                ip_address=click.ip_address,
                user_agent=click.user_agent,
                referrer=click.referrer,
            )
            for click in stats.recent_clicks
        ],
    )


@router.delete(
    "/shorten/{short_code}",
    response_model=MessageResponse,
    responses=_ERRORS,
    summary="Delete short URL",
)
async def delete_url(request: Request, short_code: str):
    """Soft delete a shortened URL."""
    await request.app.state.url_service.delete_url(short_code)
    return MessageResponse(message="short url deleted successfully")


admin_router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


@admin_router.get(
    "/list",
    response_model=AdminListResponse,
    response_model_exclude_none=True,
    responses={**_ERRORS, **_ADMIN_ERRORS},
    summary="List all content",
)
async def list_content(request: Request):
    """All non-deleted content, newest first."""
    contents = await request.app.state.content_service.list_all()

    items = [
        AdminContentItem(
            id=content.id,
            type=content.kind.value,
            title=content.title,
            filename=content.filename,
            size=content.size,
            created_at=content.created_at,
            expires_at=content.expires_at,
            view_count=content.view_count,
        )
        for content in contents
    ]
    return AdminListResponse(total=len(items), contents=items)


@admin_router.post(
    "/sweep",
    response_model=SweepResponse,
    responses={**_ERRORS, **_ADMIN_ERRORS},
    summary="Run an expiry sweep now",
)
async def run_sweep(request: Request):
    """Purge expired content immediately."""
    result = await request.app.state.sweeper.run_once()
    return SweepResponse(**result.to_dict())


router.include_router(admin_router)
