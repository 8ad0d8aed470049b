"""Request utility functions for capturing client metadata."""

import ipaddress
import logging

from fastapi import Request

from stacknote.core.config import settings

logger = logging.getLogger(__name__)

# Column widths on the token tables
_MAX_USER_AGENT_LENGTH = 500
_MAX_IP_LENGTH = 45


def _is_valid_ip(ip_str: str) -> bool:
    """Check if a string is a valid IP address."""
    try:
        ipaddress.ip_address(ip_str)
        return True
    except ValueError:
        return False


def get_client_ip(request: Request) -> str | None:
    """Get the client IP address from a request.

    Forwarding headers are only honoured when the direct peer is a trusted
    proxy (TRUSTED_PROXIES), otherwise any client could spoof its address:
    1. First entry of X-Forwarded-For
    2. X-Real-IP
    3. Direct client connection
    """
    peer = request.client.host if request.client else None

    if peer and peer in settings.trusted_proxies_list:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            ip = forwarded_for.split(",")[0].strip()
            if _is_valid_ip(ip):
                return ip
            logger.warning(f"Invalid X-Forwarded-For: {forwarded_for}")

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            ip = real_ip.strip()
            if _is_valid_ip(ip):
                return ip
            logger.warning(f"Invalid X-Real-IP: {real_ip}")

    if peer:
        return peer[:_MAX_IP_LENGTH]

    return None


def get_user_agent(request: Request) -> str | None:
    """Get the User-Agent header, truncated to the stored column width."""
    user_agent = request.headers.get("User-Agent")
    if not user_agent:
        return None
    return user_agent[:_MAX_USER_AGENT_LENGTH]
