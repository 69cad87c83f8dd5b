"""Shared rate limiter configuration for the application."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from taskmaster.core.config import settings


def get_real_client_ip(request: Request) -> str:
    """
    Get the real client IP address, accounting for proxies.

    Only trusts X-Forwarded-For/X-Real-IP headers when BEHIND_PROXY=True.
    """
    if settings.BEHIND_PROXY:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

    return get_remote_address(request)


limiter = Limiter(key_func=get_real_client_ip, default_limits=["100/minute"])
