"""Request utility functions for reading credentials off a request."""

import ipaddress
import logging

from fastapi import Request

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def _is_valid_ip(ip_str: str) -> bool:
    """Check if a string is a valid IP address."""
    try:
        ipaddress.ip_address(ip_str)
        return True
    except ValueError:
        return False


def extract_bearer_token(request: Request) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith(BEARER_PREFIX):
        token = auth_header[len(BEARER_PREFIX) :].strip()
        return token or None
    return None


def get_session_cookie(request: Request, cookie_name: str) -> str | None:
    return request.cookies.get(cookie_name) or None


def get_client_ip(request: Request) -> str | None:
    """Get the client IP address from a request.

    X-Real-IP is only trusted when the direct peer is localhost (a local
    reverse proxy). X-Forwarded-For is never trusted.
    """
    if request.client and request.client.host in ("127.0.0.1", "::1", "localhost"):
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            ip = real_ip.strip()
            if _is_valid_ip(ip):
                return ip
            logger.warning(f"Invalid X-Real-IP: {real_ip}")

    if request.client:
        return request.client.host

    return None
