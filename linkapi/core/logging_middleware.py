import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = logging.getLogger("linkapi.access")

REQUEST_ID_HEADER = "X-Request-ID"
# health checks and browser noise are not worth an access line
QUIET_PATHS = frozenset({"/health", "/favicon.ico", "/robots.txt"})


class LoggingMiddleware(BaseHTTPMiddleware):
    """One access line per request, tagged with a request id.

    Only the path is logged, never the query string. Short-link hits are
    logged at DEBUG since they dominate traffic; API calls at INFO.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        path = request.url.path
        client = request.client.host if request.client else "-"
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                f"[{request_id}] {request.method} {path} from {client} crashed"
            )
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id

        line = (
            f"[{request_id}] {request.method} {path} -> {response.status_code} "
            f"({elapsed_ms:.1f}ms, {client})"
        )
        if response.status_code >= 500:
            logger.error(line)
        elif response.status_code >= 400 and response.status_code != 410:
            logger.warning(line)
        elif path in QUIET_PATHS:
            pass
        elif path.startswith("/api/"):
            logger.info(line)
        else:
            logger.debug(line)
        return response
