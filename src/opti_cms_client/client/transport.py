"""Deadline-bounded HTTP sends shared by the token manager and dispatcher."""

import asyncio
import logging

import httpx

from ..errors import RequestTimeoutError

logger = logging.getLogger("opti_cms_client.transport")


def build_http_client(timeout_ms: int) -> httpx.AsyncClient:
    """Create the shared async HTTP client used by a ``CmsClient``."""
    return httpx.AsyncClient(timeout=httpx.Timeout(timeout_ms / 1000))


async def send_with_timeout(
    http_client: httpx.AsyncClient,
    request: httpx.Request,
    *,
    timeout_ms: int,
) -> httpx.Response:
    """Send ``request`` and read its body within ``timeout_ms`` wall-clock ms.

    The deadline covers the whole round trip, not individual socket phases.
    Whichever finishes first wins: when the deadline fires the in-flight send
    is cancelled and its result discarded.

    Args:
        http_client: The client to send with.
        request: A fully built request.
        timeout_ms: Hard limit for the round trip.

    Returns:
        The response with its body loaded.

    Raises:
        RequestTimeoutError: If the deadline elapses first, or the transport
            reports its own timeout.

    """
    try:
        async with asyncio.timeout(timeout_ms / 1000):
            return await http_client.send(request)
    except (TimeoutError, httpx.TimeoutException) as exc:
        logger.warning("%s %s timed out after %d ms", request.method, request.url, timeout_ms)
        raise RequestTimeoutError(timeout_ms) from exc


__all__ = ["build_http_client", "send_with_timeout"]
