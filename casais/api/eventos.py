"""Calendar routes. Every account reads the same eventos; leaders write them."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from .deps import get_evento_service, http_error_from_service_error
from ..domain.account import Role
from ..domain.contracts import EventoFields
from ..domain.errors import ServiceError
from ..domain.evento_service import EventoService
from ..domain.scoping import PageRequest
from ..schemas import EventoIn, EventoOut, StatusResponse
from ..schemas.evento import EventoListResponse, EventoResponse
from ..security.gate import require_role
from ..security.tokens import SessionClaims

router = APIRouter(prefix="/eventos", tags=["eventos"])

leader_only = require_role(Role.LEADER)


def _fields(payload: EventoIn) -> EventoFields:
    return EventoFields(titulo=payload.titulo, descricao=payload.descricao, data=payload.data)


@router.get("", response_model=EventoListResponse)
def list_eventos(
    search: str | None = Query(default=None),
    page: str | None = Query(default=None),
    per_page: str | None = Query(default=None, alias="perPage"),
    service: EventoService = Depends(get_evento_service),
) -> EventoListResponse:
    result = service.list_eventos(PageRequest.parse(page, per_page), search)
    return EventoListResponse(
        eventos=[EventoOut.from_domain(item) for item in result.items],
        current_page=result.current_page,
        total=result.total,
        pages=result.pages,
    )


@router.get("/{evento_id}", response_model=EventoResponse)
def get_evento(evento_id: str, service: EventoService = Depends(get_evento_service)) -> EventoResponse:
    try:
        evento = service.get_evento(evento_id)
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    return EventoResponse(evento=EventoOut.from_domain(evento))


@router.post("", response_model=EventoResponse, status_code=status.HTTP_201_CREATED)
def add_evento(
    payload: EventoIn,
    identity: SessionClaims = Depends(leader_only),
    service: EventoService = Depends(get_evento_service),
) -> EventoResponse:
    try:
        evento = service.add_evento(identity.subject, _fields(payload))
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    return EventoResponse(title="Evento criado.", evento=EventoOut.from_domain(evento))


@router.put("/{evento_id}", response_model=EventoResponse, dependencies=[Depends(leader_only)])
def update_evento(
    evento_id: str,
    payload: EventoIn,
    service: EventoService = Depends(get_evento_service),
) -> EventoResponse:
    try:
        evento = service.update_evento(evento_id, _fields(payload))
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    return EventoResponse(title="Evento atualizado.", evento=EventoOut.from_domain(evento))


@router.delete("/{evento_id}", response_model=StatusResponse, dependencies=[Depends(leader_only)])
def delete_evento(evento_id: str, service: EventoService = Depends(get_evento_service)) -> StatusResponse:
    try:
        service.delete_evento(evento_id)
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    return StatusResponse(title="Evento removido.")
