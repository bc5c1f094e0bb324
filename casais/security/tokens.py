"""Utilities for issuing and validating application JWTs."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import jwt

from ..config import Settings
from ..domain.account import Role


class TokenVerificationError(Exception):
    """Raised when a bearer token cannot be trusted."""


@dataclass(frozen=True, slots=True)
class SessionClaims:
    """Identity attached to a request after successful verification."""

    subject: str
    issued_at: int
    expires_at: int
    role: Role | None = None
    username: str | None = None


class TokenService:
    """Sign and verify HS256 tokens with the process secret."""

    algorithm = "HS256"

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.jwt_secret
        self._issuer = settings.jwt_issuer
        self._ttl = settings.jwt_ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def issue(
        self,
        subject: str,
        role: Role | None = None,
        *,
        username: str | None = None,
        now: int | None = None,
    ) -> str:
        """Create a signed JWT representing an authenticated account.

        Parameters
        ----------
        subject:
            Account identifier embedded in the ``sub`` claim.
        role:
            Optional role; omitted from the payload when ``None``.
        username:
            Optional display name carried in the legacy ``user`` claim.
        now:
            Issue time override, mostly useful for tests.
        """
        issued_at = int(time.time()) if now is None else now
        payload: dict[str, Any] = {
            "iss": self._issuer,
            "sub": subject,
            "iat": issued_at,
            "exp": issued_at + self._ttl,
        }
        if role is not None:
            payload["role"] = Role(role).value
        if username:
            payload["user"] = username
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> SessionClaims:
        """Decode ``token`` and return its claims.

        Raises
        ------
        TokenVerificationError
            When the signature, issuer, payload shape or expiry check fails.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                issuer=self._issuer,
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.PyJWTError as exc:
            raise TokenVerificationError(str(exc)) from exc

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise TokenVerificationError("token subject missing")
        role_value = payload.get("role")
        try:
            role = Role(role_value) if role_value is not None else None
        except ValueError as exc:
            raise TokenVerificationError(f"unknown role {role_value!r}") from exc
        return SessionClaims(
            subject=subject,
            issued_at=int(payload["iat"]),
            expires_at=int(payload["exp"]),
            role=role,
            username=payload.get("user"),
        )
