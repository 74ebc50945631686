"""Data models for ephemera."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def utcnow() -> datetime:
    """Current UTC time truncated to whole seconds (the SQLite storage precision)."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def as_utc(value: Any) -> Optional[datetime]:
    """Normalise a database timestamp (datetime or ISO text) to an aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value))
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class ContentKind(str, Enum):
    FILE = "file"
    NOTE = "note"


class Lifecycle(str, Enum):
    """Lifecycle of a stored record: active -> soft-deleted -> purged, or expired -> purged."""

    ACTIVE = "active"
    SOFT_DELETED = "soft_deleted"
    EXPIRED = "expired"
    PURGED = "purged"

    @property
    def purgeable(self) -> bool:
        return self.allows(Lifecycle.PURGED)

    def allows(self, target: "Lifecycle") -> bool:
        """Whether moving from this state to ``target`` is a legal transition."""
        return target in _TRANSITIONS[self]

    @classmethod
    def derive(
        cls,
        expires_at: Optional[datetime],
        deleted_at: Optional[datetime],
        now: Optional[datetime] = None,
    ) -> "Lifecycle":
        """Derive the state from the two timestamps. Expiry wins over soft delete."""
        now = now or utcnow()
        if expires_at is not None and expires_at <= now:
            return cls.EXPIRED
        if deleted_at is not None and deleted_at <= now:
            return cls.SOFT_DELETED
        return cls.ACTIVE


_TRANSITIONS = {
    Lifecycle.ACTIVE: {Lifecycle.SOFT_DELETED, Lifecycle.EXPIRED},
    Lifecycle.SOFT_DELETED: {Lifecycle.EXPIRED},
    Lifecycle.EXPIRED: {Lifecycle.PURGED},
    Lifecycle.PURGED: set(),
}


@dataclass
class Content:
    """Represents one shared artifact (file or note)."""

    id: str
    kind: ContentKind
    expires_at: datetime
    created_at: Optional[datetime] = None
    title: Optional[str] = None
    filename: Optional[str] = None
    storage_path: Optional[str] = None
    size: Optional[int] = None
    body: Optional[str] = None
    view_count: int = 0
    deleted_at: Optional[datetime] = None

    def validate(self) -> None:
        """Check that exactly the fields belonging to ``kind`` are populated.

        Raises:
            ValueError: If note and file fields are mixed or missing
        """
        file_fields = (self.filename, self.storage_path, self.size)
        if self.kind is ContentKind.NOTE:
            if self.body is None:
                raise ValueError("note content requires a body")
            if any(v is not None for v in file_fields):
                raise ValueError("note content cannot carry file fields")
        else:
            if any(v is None for v in file_fields):
                raise ValueError("file content requires filename, storage_path and size")
            if self.body is not None or self.title is not None:
                raise ValueError("file content cannot carry note fields")

    def lifecycle(self, now: Optional[datetime] = None) -> Lifecycle:
        return Lifecycle.derive(self.expires_at, self.deleted_at, now)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "title": self.title,
            "filename": self.filename,
            "storage_path": self.storage_path,
            "size": self.size,
            "body": self.body,
            "created_at": _iso(self.created_at),
            "expires_at": _iso(self.expires_at),
            "view_count": self.view_count,
            "deleted_at": _iso(self.deleted_at),
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Content":
        """Create from a database row."""
        size = row.get("size")
        return cls(
            id=row["id"],
            kind=ContentKind(row["kind"]),
            title=row.get("title"),
            filename=row.get("filename"),
            storage_path=row.get("storage_path"),
            size=int(size) if size is not None else None,
            body=row.get("body"),
            created_at=as_utc(row.get("created_at")),
            expires_at=as_utc(row["expires_at"]),
            view_count=row.get("view_count") or 0,
            deleted_at=as_utc(row.get("deleted_at")),
        )


@dataclass
class ContentStats:
    view_count: int
    created_at: Optional[datetime]
    expires_at: datetime


@dataclass
class ShortenedURL:
    """Represents one shortened link."""

    short_code: str
    original_url: str
    id: Optional[int] = None
    custom_alias: Optional[str] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    click_count: int = 0
    deleted_at: Optional[datetime] = None

    def lifecycle(self, now: Optional[datetime] = None) -> Lifecycle:
        return Lifecycle.derive(self.expires_at, self.deleted_at, now)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "short_code": self.short_code,
            "original_url": self.original_url,
            "custom_alias": self.custom_alias,
            "created_at": _iso(self.created_at),
            "expires_at": _iso(self.expires_at),
            "click_count": self.click_count,
            "deleted_at": _iso(self.deleted_at),
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ShortenedURL":
        """Create from a database row."""
        return cls(
            id=int(row["id"]),
            short_code=row["short_code"],
            original_url=row["original_url"],
            custom_alias=row.get("custom_alias"),
            created_at=as_utc(row.get("created_at")),
            expires_at=as_utc(row.get("expires_at")),
            click_count=row.get("click_count") or 0,
            deleted_at=as_utc(row.get("deleted_at")),
        )


@dataclass
class URLClick:
    """Append-only click analytics record."""

    url_id: int
    ip_address: str = ""
    user_agent: str = ""
    referrer: str = ""
    id: Optional[int] = None
    clicked_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url_id": self.url_id,
            "clicked_at": _iso(self.clicked_at),
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "referrer": self.referrer,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "URLClick":
        return cls(
            id=int(row["id"]),
            url_id=int(row["url_id"]),
            clicked_at=as_utc(row.get("clicked_at")),
            ip_address=row.get("ip_address") or "",
            user_agent=row.get("user_agent") or "",
            referrer=row.get("referrer") or "",
        )


@dataclass
class URLStats:
    url: ShortenedURL
    recent_clicks: List[URLClick] = field(default_factory=list)


@dataclass
class ClientMeta:
    """Request metadata recorded with each redirect."""

    ip_address: str = ""
    user_agent: str = ""
    referrer: str = ""
