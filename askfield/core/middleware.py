"""
Request logging for the FastAPI application.
"""
import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

# Set up logging
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time"

# Path segments whose next segment is a secret
SECRET_SEGMENTS = ("verify-email",)


def redact_path(path: str) -> str:
    """Mask path parameters that carry secrets, such as verification tokens."""
    parts = path.split("/")
    for i, part in enumerate(parts[:-1]):
        if part in SECRET_SEGMENTS and parts[i + 1]:
            parts[i + 1] = "***"
    return "/".join(parts)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id and logs its outcome and duration.

    A caller-supplied ``X-Request-ID`` is kept so that ids line up with the
    frontend's logs; otherwise a new one is generated. Both the id and the
    processing time are echoed back as response headers.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        label = f"{request.method} {redact_path(request.url.path)}"
        client_host = request.client.host if request.client else "unknown"
        logger.info(f"[{request_id}] {label} from {client_host}")

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"[{request_id}] {label} raised {type(e).__name__} after {time.perf_counter() - started:.4f}s")
            raise

        elapsed = time.perf_counter() - started
        response.headers[PROCESS_TIME_HEADER] = f"{elapsed:.4f}"
        response.headers[REQUEST_ID_HEADER] = request_id

        level = logging.ERROR if response.status_code >= 500 else logging.INFO
        logger.log(level, f"[{request_id}] {label} -> {response.status_code} in {elapsed:.4f}s")
        return response


def setup_middlewares(app):
    """
    Set up all custom middlewares for the application.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(RequestLoggingMiddleware)
