"""Registration, login and name-history routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from .deps import get_account_service, get_rate_limiter, http_error_from_service_error
from ..domain.errors import ServiceError
from ..domain.service import AccountService
from ..schemas import (
    CredentialsRequest,
    HistoryRenameRequest,
    HistoryRequest,
    HistoryResponse,
    LoginResponse,
    StatusResponse,
)
from ..security.gate import current_identity
from ..security.rate_limiter import RateLimiter
from ..security.tokens import SessionClaims

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _check_rate(limiter: RateLimiter, request: Request, action: str) -> None:
    client = request.client.host if request.client else "unknown"
    if not limiter.allow(f"{action}:{client}"):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Muitas tentativas, tente novamente mais tarde.",
        )


@router.post("/register", response_model=StatusResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: CredentialsRequest,
    request: Request,
    service: AccountService = Depends(get_account_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> StatusResponse:
    """Create an account with the default ``user`` role."""
    _check_rate(limiter, request, "register")
    try:
        service.register(payload.username, payload.password)
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    return StatusResponse(title="Usuário registrado com sucesso.")


@router.post("/login", response_model=LoginResponse)
def login(
    payload: CredentialsRequest,
    request: Request,
    service: AccountService = Depends(get_account_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> LoginResponse:
    """Exchange a username and password for a bearer token."""
    _check_rate(limiter, request, "login")
    try:
        result = service.login(payload.username, payload.password)
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    return LoginResponse(
        message="Usuario logado com sucesso.",
        token=result.token,
        id=result.account_id,
        expires_in=result.expires_in,
    )


@router.get("/history", response_model=HistoryResponse, tags=["history"])
def get_history(
    identity: SessionClaims = Depends(current_identity),
    service: AccountService = Depends(get_account_service),
) -> HistoryResponse:
    try:
        history = service.history(identity.subject)
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    return HistoryResponse(history=history)


@router.post("/history", response_model=HistoryResponse, tags=["history"])
def add_history(
    payload: HistoryRequest,
    identity: SessionClaims = Depends(current_identity),
    service: AccountService = Depends(get_account_service),
) -> HistoryResponse:
    """Append a name unless it is already in the history."""
    try:
        history = service.add_history(identity.subject, payload.name)
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    return HistoryResponse(history=history)


@router.put("/history", response_model=HistoryResponse, tags=["history"])
def rename_history(
    payload: HistoryRenameRequest,
    identity: SessionClaims = Depends(current_identity),
    service: AccountService = Depends(get_account_service),
) -> HistoryResponse:
    try:
        history = service.rename_history(identity.subject, payload.old_name, payload.name)
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    return HistoryResponse(history=history)


@router.delete("/history/{name}", response_model=HistoryResponse, tags=["history"])
def delete_history(
    name: str,
    identity: SessionClaims = Depends(current_identity),
    service: AccountService = Depends(get_account_service),
) -> HistoryResponse:
    try:
        history = service.remove_history(identity.subject, name)
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    return HistoryResponse(history=history)
