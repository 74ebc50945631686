"""Header parsing utilities for ephemera."""

from typing import Dict, Mapping, Optional


def extract_forwarded_headers(headers: Mapping[str, str]) -> Dict[str, Optional[str]]:
    """Extract proxy headers from a request.

    Args:
        headers: Request headers

    Returns:
        Dictionary with forwarded_proto, forwarded_host, forwarded_for, real_ip
    """
    # Convert headers to lowercase for case-insensitive lookup
    headers_lower = {k.lower(): v for k, v in headers.items()}

    return {
        "forwarded_proto": headers_lower.get("x-forwarded-proto"),
        "forwarded_host": headers_lower.get("x-forwarded-host"),
        "forwarded_for": headers_lower.get("x-forwarded-for"),
        "real_ip": headers_lower.get("x-real-ip"),
    }


def get_client_ip(headers: Mapping[str, str], peer_host: Optional[str] = None) -> str:
    """Resolve the client address.

    Priority:
    1. First entry of X-Forwarded-For
    2. X-Real-IP
    3. The socket peer

    Returns:
        Client IP, or '' if unknown
    """
    forwarded = extract_forwarded_headers(headers)

    if forwarded["forwarded_for"]:
        first = forwarded["forwarded_for"].split(",")[0].strip()
        if first:
            return first

    if forwarded["real_ip"]:
        return forwarded["real_ip"].strip()

    return peer_host or ""
