# middleware.py
import logging
import re
from fastapi import Request

logger = logging.getLogger(__name__)

# Auth routes, static assets and well-known files bypass the gate
EXCLUDED_PATHS = re.compile(r"^/(?:(?:api/auth|static)(?:/|$)|(?:favicon\.ico|robots\.txt|sitemap\.xml)$)")


def is_gated(path: str) -> bool:
    return EXCLUDED_PATHS.match(path) is None


async def route_gate(request: Request, call_next):
    """Let every request through; access is decided by the routes themselves."""
    request.state.gated = is_gated(request.url.path)
    if request.state.gated:
        logger.debug(f"Gate passed {request.method} {request.url.path}")
    return await call_next(request)
