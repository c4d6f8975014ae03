"""Per-request access log and correlation id.

A client-supplied X-Request-ID is kept (truncated) so a retried bid can be
traced across attempts; otherwise a fresh id is minted. The id is put on
request.state for the ApiResponse envelope and echoed in the response header.

4xx lines log at WARNING (rate-limited and rejected bids show up without
turning on DEBUG), 5xx at ERROR.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("rm.request")

_HEADER = "X-Request-ID"
_MAX_CLIENT_ID_LEN = 64


def _request_id(request: Request) -> str:
    supplied = request.headers.get(_HEADER, "").strip()
    if supplied:
        return supplied[:_MAX_CLIENT_ID_LEN]
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = _request_id(request)

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers[_HEADER] = request.state.request_id
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(
            level,
            "%s %s %d %.0fms %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request.state.request_id,
        )
        return response
