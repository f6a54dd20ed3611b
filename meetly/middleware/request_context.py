"""Request context middleware: request IDs and completion logging.

Every request gets an ID (the caller's X-Request-ID, or a fresh UUID)
stored in ``request_id_var``.  The handler filter installed by
core.logging.setup_logging copies it onto every LogRecord, so the log
lines of one save (event persisted, meeting scheduled, invitee failed,
package persisted) can be grouped even when requests interleave.

Payment provider retries reuse the same webhook body but not the same
request ID; grep by purchase_id to follow a purchase across deliveries.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from meetly.core.logging import request_id_var

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request ID, time the request, log a summary line."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id_var.set(req_id)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        logger.info(
            "%s %s → %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
