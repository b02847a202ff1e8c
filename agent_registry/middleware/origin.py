from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request, status
from fastapi.responses import JSONResponse
from typing import Iterable
import logging

logger = logging.getLogger(__name__)


def is_origin_allowed(origin: str, allowed_origins: Iterable[str]) -> bool:
    """
    Requests without an Origin header (server-to-server, curl) are allowed;
    browser requests must come from an allow-listed origin
    """
    if not origin:
        return True
    return origin.rstrip("/") in {o.rstrip("/") for o in allowed_origins}


class OriginAllowListMiddleware(BaseHTTPMiddleware):
    """Reject requests from unknown origins before they reach any route"""

    def __init__(self, app, allowed_origins: Iterable[str]):
        super().__init__(app)
        self.allowed_origins = list(allowed_origins)

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")
        if not is_origin_allowed(origin, self.allowed_origins):
            logger.warning(f"Rejected request from origin {origin} to {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_403_FORBIDDEN,
                content={"message": "Not allowed by CORS", "error": "CorsError"},
            )
        return await call_next(request)
