"""Shared outbound HTTP client for Google and the payment provider.

One pooled httpx.AsyncClient per process, opened and closed by the app
lifespan.  Outside a running app (tests, scripts) it is None and the
API wires the in-memory providers instead.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx

logger = logging.getLogger(__name__)

TIMEOUT = httpx.Timeout(15.0, connect=5.0)

http_client: httpx.AsyncClient | None = None


@asynccontextmanager
async def lifespan_http():
    global http_client
    http_client = httpx.AsyncClient(timeout=TIMEOUT)
    logger.info("Outbound HTTP client ready")
    try:
        yield
    finally:
        await http_client.aclose()
        http_client = None
