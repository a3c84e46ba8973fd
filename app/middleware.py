import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.api.errors import handle_unexpected_error
from app.utils.logging import request_id_var

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SKIPPED_PATH_FRAGMENTS = ("/static/", "/favicon.ico")
HIDDEN_HEADERS = {"authorization", "cookie"}
# Bodies at or above this many bytes are not logged
BODY_LOG_LIMIT = 10000


def status_category(status_code: int) -> str:
    if 200 <= status_code < 300:
        return "OK"
    if 300 <= status_code < 400:
        return "REDIRECT"
    if 400 <= status_code < 500:
        return "CLIENT_ERROR"
    if status_code >= 500:
        return "SERVER_ERROR"
    return "UNKNOWN"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with a correlation id and log its request/response pair.

    The id is kept in a context variable so every log line written while the
    request is handled carries it, and it is returned in the X-Request-ID
    header. Unexpected exceptions are turned into a 500 response here so they
    are logged under the same id. At DEBUG level non-empty request and response
    bodies below BODY_LOG_LIMIT bytes are logged as well.
    """

    def __init__(self, app, slow_request_threshold_ms: int = 1000):
        super().__init__(app)
        self.slow_request_threshold_ms = slow_request_threshold_ms

    async def dispatch(self, request: Request, call_next):
        request_id = uuid.uuid4().hex[:8].upper()
        token = request_id_var.set(request_id)
        log_enabled = not any(fragment in request.url.path for fragment in SKIPPED_PATH_FRAGMENTS)
        start = time.perf_counter()

        try:
            if log_enabled:
                self._log_request(request_id, request)
                if logger.isEnabledFor(logging.DEBUG):
                    self._log_body(request_id, "Request", await request.body())

            try:
                response = await call_next(request)
            except Exception as e:
                response = handle_unexpected_error(request, e)

            duration_ms = int((time.perf_counter() - start) * 1000)
            if log_enabled:
                self._log_response(request_id, response.status_code, duration_ms)
                if logger.isEnabledFor(logging.DEBUG):
                    await self._log_response_body(request_id, response)

            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)

    def _log_request(self, request_id: str, request: Request) -> None:
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"
        logger.info(f"[{request_id}] --> {request.method} {path}")

        if logger.isEnabledFor(logging.DEBUG):
            for name, value in request.headers.items():
                if name.lower() not in HIDDEN_HEADERS:
                    logger.debug(f"[{request_id}] Header: {name}={value}")

    async def _log_response_body(self, request_id: str, response: Response) -> None:
        """Log the response body, replaying streamed chunks so the client still receives them."""
        body_iterator = getattr(response, "body_iterator", None)
        if body_iterator is None:
            self._log_body(request_id, "Response", response.body)
            return

        chunks = [chunk async for chunk in body_iterator]
        self._log_body(request_id, "Response", b"".join(chunks))

        async def replay():
            for chunk in chunks:
                yield chunk

        response.body_iterator = replay()

    def _log_body(self, request_id: str, kind: str, body: bytes) -> None:
        if 0 < len(body) < BODY_LOG_LIMIT:
            logger.debug(f"[{request_id}] {kind} body: {body.decode('utf-8', errors='replace')}")

    def _log_response(self, request_id: str, status_code: int, duration_ms: int) -> None:
        message = f"[{request_id}] <-- {status_code} {status_category(status_code)} ({duration_ms}ms)"
        if status_code >= 500:
            logger.error(message)
        elif status_code >= 400:
            logger.warning(message)
        else:
            logger.info(message)

        if duration_ms > self.slow_request_threshold_ms:
            logger.warning(f"[{request_id}] SLOW REQUEST: took {duration_ms}ms")
