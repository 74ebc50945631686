"""Common utilities for ephemera."""

from .validators import (
    ALLOWED_EXTENSIONS,
    file_extension,
    is_allowed_extension,
    is_valid_custom_alias,
    is_valid_url,
)
from .headers import extract_forwarded_headers, get_client_ip
from .url_builder import build_download_path, build_short_url
from .logging_config import get_logger, setup_logging

__all__ = [
    "ALLOWED_EXTENSIONS",
    "file_extension",
    "is_allowed_extension",
    "is_valid_custom_alias",
    "is_valid_url",
    "extract_forwarded_headers",
    "get_client_ip",
    "build_download_path",
    "build_short_url",
    "get_logger",
    "setup_logging",
]
