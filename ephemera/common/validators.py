"""Validation utilities for ephemera."""

import os
import re
from urllib.parse import urlparse
from typing import Tuple

ALIAS_MIN_LENGTH = 3
ALIAS_MAX_LENGTH = 20
MAX_URL_LENGTH = 2048

ALLOWED_EXTENSIONS = frozenset({
    ".txt", ".pdf", ".doc", ".docx",
    ".jpg", ".jpeg", ".png", ".gif",
    ".zip", ".tar", ".gz",
    ".mp4", ".mp3", ".wav",
    ".csv", ".xlsx", ".xls",
    ".json", ".xml", ".md",
})

_ALIAS_RE = re.compile(r"^[A-Za-z0-9]+$")


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate a URL.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"

    if len(url) > MAX_URL_LENGTH:
        return False, f"URL is too long (max {MAX_URL_LENGTH} characters)"

    try:
        result = urlparse(url)
    except ValueError as e:
        return False, f"Invalid URL format: {e}"

    # Check if scheme is http or https
    if result.scheme not in ("http", "https"):
        return False, "URL must use http or https protocol"

    # Check if netloc (domain) exists
    if not result.netloc:
        return False, "URL must have a valid domain"

    return True, ""


def is_valid_custom_alias(alias: str) -> Tuple[bool, str]:
    """Validate a caller-supplied short code.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not alias or not isinstance(alias, str):
        return False, "custom alias is required"

    if not ALIAS_MIN_LENGTH <= len(alias) <= ALIAS_MAX_LENGTH:
        return False, f"custom alias must be {ALIAS_MIN_LENGTH}-{ALIAS_MAX_LENGTH} characters"

    if not _ALIAS_RE.match(alias):
        return False, "custom alias must be alphanumeric"

    return True, ""


def file_extension(filename: str) -> str:
    """Lower-cased extension of ``filename`` including the dot, or ''."""
    return os.path.splitext(filename or "")[1].lower()


def is_allowed_extension(filename: str) -> bool:
    """Files without an extension are allowed; others must be on the allow-list."""
    ext = file_extension(filename)
    return ext == "" or ext in ALLOWED_EXTENSIONS
