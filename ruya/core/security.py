"""
Admin access gate.

One shared secret, no sessions, no roles. The caller's token may arrive as
`Authorization: Bearer <token>`, an `X-Admin-Token` header or a `token`
query parameter.
"""
from __future__ import annotations

import hmac
from typing import Callable, Optional

from fastapi import Request, Response
from fastapi.routing import APIRoute

from ruya.core.config import settings
from ruya.core.errors import UnauthorizedError
from ruya.core.logging import get_logger

logger = get_logger(__name__)


def extract_token(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization")
    if auth and auth.lower().startswith("bearer "):
        return auth[7:].strip()
    header = request.headers.get("x-admin-token")
    if header:
        return header.strip()
    return request.query_params.get("token")


def is_authorized(token: Optional[str], secret: str) -> bool:
    """Constant-time equality against the configured secret."""
    if not token or not secret:
        return False
    return hmac.compare_digest(token.encode("utf-8"), secret.encode("utf-8"))


def require_admin(request: Request) -> None:
    """FastAPI dependency: raise 401 before any store access."""
    if not is_authorized(extract_token(request), settings.ADMIN_TOKEN):
        logger.warning(
            "admin_access_denied",
            path=request.url.path,
            client=request.client.host if request.client else "unknown",
        )
        raise UnauthorizedError()


class AdminGateRoute(APIRoute):
    """
    Route class that runs `require_admin` before FastAPI reads the request
    body, so a caller without the token gets 401 even for a malformed body.
    Applies only to routes declaring `Depends(require_admin)`.
    """

    def get_route_handler(self) -> Callable:
        handler = super().get_route_handler()
        if not any(dep.dependency is require_admin for dep in self.dependencies):
            return handler

        async def gated_handler(request: Request) -> Response:
            require_admin(request)
            return await handler(request)

        return gated_handler


def client_address(request: Request) -> str:
    """
    Best-effort client address: proxy headers first (when trusted), then the
    socket peer.
    """
    if settings.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
        real_ip = request.headers.get("x-real-ip")
        if real_ip and real_ip.strip():
            return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
