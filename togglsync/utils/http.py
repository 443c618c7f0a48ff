"""
HTTP client utilities with sane defaults for Toggl calls.
"""
from __future__ import annotations
import httpx


def create_http_client(
    timeout: float = 20.0,
    user_agent: str = "toggl-sync/0.11",
    **kwargs
) -> httpx.AsyncClient:
    """
    Create a configured async HTTP client with:
    - Sane timeout defaults (20s)
    - Custom user-agent
    - No transport-level retries; a failed call fails once

    Pass ``transport`` to swap in a host-provided or mock transport.
    """
    headers = kwargs.pop("headers", {})
    headers.setdefault("User-Agent", user_agent)

    timeout_config = httpx.Timeout(timeout, connect=10.0)

    transport = kwargs.pop("transport", None) or httpx.AsyncHTTPTransport(retries=0)

    return httpx.AsyncClient(
        timeout=timeout_config,
        headers=headers,
        transport=transport,
        **kwargs
    )
