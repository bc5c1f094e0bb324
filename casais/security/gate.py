"""Request gates: bearer-token authentication and role checks.

``access_gate`` is installed as an application-wide dependency so it runs
before any route dependency or handler. ``require_role`` builds a route-level
dependency that must only be composed after it.
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import HTTPException, Request, status
from prometheus_client import Counter

from ..domain.account import Role
from .tokens import SessionClaims, TokenService, TokenVerificationError

logger = logging.getLogger(__name__)

PUBLIC_PATHS = frozenset({"/", "/healthz", "/metrics", "/login", "/register"})

AUTH_REJECTIONS = Counter(
    "casais_auth_rejections_total",
    "Requests rejected by the access or role gate.",
    ["reason"],
)


def extract_bearer(request: Request) -> str | None:
    """Read the credential from ``Authorization`` or the legacy ``token`` header."""
    raw = request.headers.get("authorization") or request.headers.get("token")
    if not raw:
        return None
    parts = raw.strip().split(None, 1)
    if parts and parts[0].lower() == "bearer":
        parts = parts[1:]
    value = parts[0].strip() if parts else ""
    return value or None


def access_gate(request: Request) -> SessionClaims | None:
    """Verify the bearer token and attach its claims to ``request.state.identity``."""
    if request.url.path in PUBLIC_PATHS:
        return None

    token = extract_bearer(request)
    if token is None:
        AUTH_REJECTIONS.labels(reason="missing").inc()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token não enviado!",
            headers={"WWW-Authenticate": "Bearer"},
        )

    tokens: TokenService = request.app.state.tokens
    try:
        claims = tokens.verify(token)
    except TokenVerificationError as exc:
        AUTH_REJECTIONS.labels(reason="invalid").inc()
        logger.info("rejected bearer token on %s: %s", request.url.path, exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuário não autorizado!",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    request.state.identity = claims
    return claims


def current_identity(request: Request) -> SessionClaims:
    """Return the identity attached by :func:`access_gate`."""
    identity: SessionClaims | None = getattr(request.state, "identity", None)
    if identity is None:
        AUTH_REJECTIONS.labels(reason="unauthenticated").inc()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuário não autenticado",
        )
    return identity


def require_role(role: Role) -> Callable[[Request], SessionClaims]:
    """Dependency factory admitting only identities whose token carries ``role``.

    The role is taken from the token, not from the account record, so a
    promotion only applies once the user logs in again.
    """

    def _role_gate(request: Request) -> SessionClaims:
        identity = current_identity(request)
        if identity.role != role:
            AUTH_REJECTIONS.labels(reason="forbidden").inc()
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Apenas líderes podem realizar esta ação",
            )
        return identity

    return _role_gate
