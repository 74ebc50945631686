"""URL building utilities for ephemera."""

SHORT_URL_PREFIX = "/s"


def build_short_url(short_code: str, base_url: str, path_prefix: str = SHORT_URL_PREFIX) -> str:
    """Build complete short URL.

    Args:
        short_code: The short code
        base_url: Base URL (e.g., https://example.com)
        path_prefix: Path prefix of the redirect route

    Returns:
        Complete short URL
    """
    base = base_url.rstrip("/")
    prefix = path_prefix.strip("/")

    if prefix:
        return f"{base}/{prefix}/{short_code}"
    return f"{base}/{short_code}"


def build_download_path(content_id: str) -> str:
    """Relative download path of a file."""
    return f"/api/content/{content_id}/download"
