"""Core business logic for ephemera."""

from .shortcode import ShortCodeGenerator, ensure_unique
from .content_service import ContentService
from .url_service import URLService
from .counters import CounterUpdater
from .sweeper import ExpirySweeper, SweepResult
from .storage import FileStorage

__all__ = [
    "ContentService",
    "CounterUpdater",
    "ExpirySweeper",
    "FileStorage",
    "ShortCodeGenerator",
    "SweepResult",
    "URLService",
    "ensure_unique",
]
