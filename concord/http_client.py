"""
HTTP session configuration for the survey API.

All aiohttp sessions in concord are created here so timeouts and auth headers
stay consistent.

Usage:
    from concord.http_client import create_client_session

    async with create_client_session(token="...") as session:
        async with session.get(url) as resp:
            data = await resp.json()
"""

from __future__ import annotations

import aiohttp
from aiohttp import ClientTimeout

__all__ = [
    "DEFAULT_TIMEOUT",
    "build_timeout",
    "auth_headers",
    "create_client_session",
]

# Default timeout for survey API requests (30 seconds total)
DEFAULT_TIMEOUT = ClientTimeout(
    total=30,  # Total time for the entire request
    connect=10,  # Time to establish connection
    sock_read=20,  # Time to read response
)


def build_timeout(total_seconds: float) -> ClientTimeout:
    """Build a ClientTimeout whose connect/read budgets scale with the total."""
    return ClientTimeout(
        total=total_seconds,
        connect=min(10.0, total_seconds),
        sock_read=max(total_seconds - min(10.0, total_seconds), 1.0),
    )


def auth_headers(token: str | None) -> dict[str, str]:
    """Return request headers for the survey API."""
    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def create_client_session(
    timeout: ClientTimeout | None = None,
    token: str | None = None,
    **kwargs,
) -> aiohttp.ClientSession:
    """Create an aiohttp ClientSession for the survey API.

    Args:
        timeout: Optional custom timeout. Uses DEFAULT_TIMEOUT if not specified.
        token: Optional bearer token sent with every request.
        **kwargs: Additional arguments passed to ClientSession.

    Returns:
        Configured aiohttp.ClientSession.
    """
    if timeout is None:
        timeout = DEFAULT_TIMEOUT
    return aiohttp.ClientSession(timeout=timeout, headers=auth_headers(token), **kwargs)
