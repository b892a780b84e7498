"""Application middleware implementations."""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .context import REQUEST_ID_HEADER, bind_request_id, bind_user_id, reset_request_id, reset_user_id

logger = logging.getLogger("taskflow.access")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with a correlation id and log its outcome.

    The completion record carries the user id that ``get_user_session``
    left on ``request.state`` for signed-in requests.
    """

    def __init__(self, app, header_name: str = REQUEST_ID_HEADER):  # type: ignore[override]
        super().__init__(app)
        self._header_name = header_name

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        request_id = request.headers.get(self._header_name) or str(uuid.uuid4())
        request.state.request_id = request_id
        request_token = bind_request_id(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            user_token = bind_user_id(getattr(request.state, "user_id", None))
            try:
                logger.info(
                    "Request completed",
                    extra={
                        "method": request.method,
                        "path": request.url.path,
                        "status_code": response.status_code,
                        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    },
                )
            finally:
                reset_user_id(user_token)
        finally:
            reset_request_id(request_token)
        response.headers.setdefault(self._header_name, request_id)
        return response


__all__ = ["CorrelationIdMiddleware"]
