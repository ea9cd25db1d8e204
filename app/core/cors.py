"""CORS middleware for the relay's public endpoints.

Browsers post contact forms cross-origin, so every response carries the
allowed methods/headers, and ``OPTIONS`` on any path short-circuits with 204.

Origin policy:
- allowed_origins == "*": ``Access-Control-Allow-Origin: *``
- otherwise: the request Origin is reflected only when it exactly matches one
  (trimmed) entry of the comma-separated allow-list; no header otherwise.

Usage:
    app.middleware("http")(build_cors_middleware("https://a.com,https://b.com"))
"""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import Request, Response

ALLOW_METHODS = "POST, OPTIONS"
ALLOW_HEADERS = "Content-Type"

CallNext = Callable[[Request], Awaitable[Response]]


def parse_allowed_origins(allowed_origins: str) -> frozenset[str]:
    """Split a comma-separated allow-list into trimmed, non-empty origins."""

    return frozenset(o.strip() for o in allowed_origins.split(",") if o.strip())


def resolve_allow_origin(origin: str | None, allowed_origins: str) -> str | None:
    """Return the Access-Control-Allow-Origin value for ``origin``, if any.

    Examples:
        >>> resolve_allow_origin("https://a.com", "*")
        '*'
        >>> resolve_allow_origin("https://a.com", "https://a.com, https://b.com")
        'https://a.com'
        >>> resolve_allow_origin("https://c.com", "https://a.com,https://b.com") is None
        True
    """

    if allowed_origins.strip() == "*":
        return "*"
    if origin and origin in parse_allowed_origins(allowed_origins):
        return origin
    return None


def build_cors_middleware(allowed_origins: str) -> Callable[[Request, CallNext], Awaitable[Response]]:
    """Create an HTTP middleware applying the relay's CORS policy."""

    async def cors_middleware(request: Request, call_next: CallNext) -> Response:
        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            response = await call_next(request)

        allow_origin = resolve_allow_origin(request.headers.get("origin"), allowed_origins)
        if allow_origin is not None:
            response.headers["Access-Control-Allow-Origin"] = allow_origin
            if allow_origin != "*":
                response.headers["Vary"] = "Origin"
        response.headers["Access-Control-Allow-Methods"] = ALLOW_METHODS
        response.headers["Access-Control-Allow-Headers"] = ALLOW_HEADERS
        return response

    return cors_middleware
