"""Resolve services stored on the application state."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from ..domain.casal_service import CasalService, CasalSimpleService
from ..domain.errors import NotFoundError, ServiceError
from ..domain.evento_service import EventoService
from ..domain.service import AccountService
from ..security.rate_limiter import RateLimiter


def get_account_service(request: Request) -> AccountService:
    service: AccountService = request.app.state.account_service
    return service


def get_casal_service(request: Request) -> CasalService:
    service: CasalService = request.app.state.casal_service
    return service


def get_casal_simple_service(request: Request) -> CasalSimpleService:
    service: CasalSimpleService = request.app.state.casal_simple_service
    return service


def get_evento_service(request: Request) -> EventoService:
    service: EventoService = request.app.state.evento_service
    return service


def get_rate_limiter(request: Request) -> RateLimiter:
    limiter: RateLimiter = request.app.state.rate_limiter
    return limiter


def http_error_from_service_error(exc: ServiceError) -> HTTPException:
    status_code = status.HTTP_400_BAD_REQUEST
    if isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    return HTTPException(status_code=status_code, detail=exc.message)
