"""Request timing and tracing middleware for the build manager API."""
import re
import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("buildtrack-api.middleware")

SKIP_LOG_PATHS = {"/health"}

# Document-AI extraction routinely takes several seconds; anything slower is worth a warning
SLOW_REQUEST_MS = 15_000

_PROJECT_PATH = re.compile(r"^/api/projects/([^/]+)")


def project_id_from_path(path: str):
    match = _PROJECT_PATH.match(path)
    return match.group(1) if match else None


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that:
    - Assigns a unique X-Request-ID (uuid4) to every request/response.
    - Measures end-to-end request duration in milliseconds and adds X-Process-Time.
    - Emits one structured log line per request (except /health), tagged
      with the project id when the path is project-scoped.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = str(uuid.uuid4())
        start_time = time.perf_counter()
        request.state.request_id = request_id

        response: Response = await call_next(request)

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)

        path = request.url.path
        if path in SKIP_LOG_PATHS:
            return response

        extra = {
            "http_method": request.method,
            "http_path": path,
            "http_status": response.status_code,
            "request_id": request_id,
            "duration_ms": duration_ms,
        }
        project_id = project_id_from_path(path)
        if project_id:
            extra["project_id"] = project_id

        if duration_ms > SLOW_REQUEST_MS:
            logger.warning(f"slow request: {request.method} {path}", extra=extra)
        else:
            logger.info("request completed", extra=extra)
        return response
