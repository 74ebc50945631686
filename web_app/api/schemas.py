"""Pydantic schemas for API requests and responses.

JSON keys are camelCase; models also accept their Python field names.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NoteRequest(CamelModel):
    """Request to create a note."""

    title: Optional[str] = Field(None, description="Optional note title", max_length=200)
    content: str = Field(..., description="Note body (at most 1 MiB of UTF-8)")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [{"title": "meeting notes", "content": "hello"}]
        },
    )


class UploadResponse(CamelModel):
    """Response after uploading a file."""

    id: str = Field(..., description="Content id")
    filename: str
    size: int
    expires_at: datetime


class NoteResponse(CamelModel):
    """Response after creating a note."""

    id: str = Field(..., description="Content id")
    title: Optional[str] = None
    expires_at: datetime


class ContentResponse(CamelModel):
    """A note body, or the metadata and download link of a file."""

    type: str = Field(..., description="'note' or 'file'")
    title: Optional[str] = None
    content: Optional[str] = None
    filename: Optional[str] = None
    size: Optional[int] = None
    download_url: Optional[str] = None


class ContentStatsResponse(CamelModel):
    view_count: int
    created_at: Optional[datetime] = None
    expires_at: datetime


class ShortenRequest(CamelModel):
    """Request to shorten a URL."""

    url: str = Field(..., description="The URL to shorten", min_length=1)
    custom_alias: Optional[str] = Field(None, description="Optional custom short code")
    expires_in: Optional[int] = Field(None, description="Days until expiry; omit or 0 for never")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"url": "https://example.com/very/long/path/to/resource"},
                {"url": "https://github.com/user/repo", "customAlias": "myrepo", "expiresIn": 30},
            ]
        },
    )


class ShortenResponse(CamelModel):
    """Response after shortening a URL."""

    id: int
    short_code: str = Field(..., description="The generated or custom short code")
    short_url: str = Field(..., description="The complete short URL")
    original_url: str
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class ClickResponse(CamelModel):
    id: Optional[int] = None
    url_id: int
    clicked_at: Optional[datetime] = None
    ip_address: str = ""
    user_agent: str = ""
    referrer: str = ""


class URLStatsResponse(CamelModel):
    short_code: str
    original_url: str
    click_count: int
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    recent_clicks: List[ClickResponse] = Field(default_factory=list)


class AdminContentItem(CamelModel):
    id: str
    type: str
    title: Optional[str] = None
    filename: Optional[str] = None
    size: Optional[int] = None
    created_at: Optional[datetime] = None
    expires_at: datetime
    view_count: int


class AdminListResponse(CamelModel):
    total: int
    contents: List[AdminContentItem]


class SweepResponse(CamelModel):
    expired_files: int
    files_deleted: int
    files_missing: int
    files_failed: int
    records_deleted: int


class MessageResponse(CamelModel):
    message: str


class HealthResponse(CamelModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database: str = Field(..., description="Database status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(CamelModel):
    """Error envelope."""

    error: str = Field(..., description="Error message")
    code: str = Field(..., description="Stable error code")
