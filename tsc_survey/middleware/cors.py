"""CORS handling for the survey API.

Origins are checked against ``ALLOWED_ORIGINS``. With no allow-list the
request origin is reflected (or ``*`` when there is none). A disallowed
origin gets the first allowed origin back, so the browser blocks it.
"""
from fastapi import Request, Response
import logging

from tsc_survey.config import get_settings

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/api/submit"
MAX_AGE_SECONDS = 86400


class CorsPolicy:
    """Builds CORS response headers for one request."""

    def __init__(self, allowed_origins: list[str] | None = None):
        self._allowed_origins = allowed_origins

    @property
    def allowed_origins(self) -> list[str]:
        if self._allowed_origins is not None:
            return self._allowed_origins
        return get_settings().allowed_origins

    def pick_origin(self, origin: str) -> str:
        allowed = self.allowed_origins
        if not allowed:
            return origin or "*"
        if origin and origin in allowed:
            return origin
        logger.debug(f"Origin {origin!r} is not in the CORS allow-list")
        return allowed[0]

    def headers_for(self, request: Request) -> dict[str, str]:
        methods = "POST,OPTIONS" if request.url.path == SUBMIT_PATH else "GET,OPTIONS"
        return {
            "Access-Control-Allow-Origin": self.pick_origin(request.headers.get("origin", "")),
            "Access-Control-Allow-Methods": methods,
            "Access-Control-Allow-Headers": "Content-Type, Authorization",
            "Access-Control-Max-Age": str(MAX_AGE_SECONDS),
            "Vary": "Origin",
        }

    def preflight_response(self, request: Request) -> Response:
        return Response(status_code=204, headers=self.headers_for(request))


# Global instance
cors_policy = CorsPolicy()


async def cors_middleware(request: Request, call_next):
    """FastAPI middleware function adding CORS headers to API responses."""
    if not request.url.path.startswith("/api/"):
        return await call_next(request)

    if request.method == "OPTIONS" and request.url.path != SUBMIT_PATH:
        return cors_policy.preflight_response(request)

    response = await call_next(request)
    for name, value in cors_policy.headers_for(request).items():
        response.headers.setdefault(name, value)
    return response
