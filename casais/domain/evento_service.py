"""Shared calendar events.

Eventos are visible to every authenticated account; only the deletion flag
filters them. Writes are limited to leaders at the HTTP layer.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone

from .contracts import EventoFields
from .errors import InvalidInputError, NotFoundError
from .resources import Evento
from .scoping import Page, PageRequest, ResourceScope, merge_truthy
from ..repository import EventoRepository

_SCOPE = ResourceScope.shared_resource()


def _check_date(value: str) -> str:
    try:
        date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidInputError("Data inválida, use o formato AAAA-MM-DD.") from exc
    return value


class EventoService:
    def __init__(self, repository: EventoRepository) -> None:
        self._repository = repository

    def list_eventos(self, page: PageRequest, search: str | None = None) -> Page[Evento]:
        return self._repository.list_page(_SCOPE, page, search)

    def get_evento(self, evento_id: str) -> Evento:
        evento = self._repository.get(evento_id, _SCOPE)
        if evento is None:
            raise NotFoundError("Evento não encontrado")
        return evento

    def add_evento(self, creator_id: str, fields: EventoFields) -> Evento:
        titulo = (fields.titulo or "").strip()
        data = (fields.data or "").strip()
        if not titulo or not data:
            raise InvalidInputError("Título e data são obrigatórios.")
        return self._repository.insert(
            Evento(
                id="",
                titulo=titulo,
                descricao=fields.descricao or "",
                data=_check_date(data),
                criado_por=creator_id,
                created_at=datetime.now(timezone.utc),
            )
        )

    def update_evento(self, evento_id: str, fields: EventoFields) -> Evento:
        existing = self.get_evento(evento_id)
        data = (fields.data or "").strip()
        merged = replace(
            existing,
            titulo=merge_truthy(existing.titulo, fields.titulo),
            descricao=merge_truthy(existing.descricao, fields.descricao),
            data=_check_date(data) if data else existing.data,
        )
        updated = self._repository.update(merged, _SCOPE)
        if updated is None:
            raise NotFoundError("Evento não encontrado")
        return updated

    def delete_evento(self, evento_id: str) -> None:
        if not self._repository.soft_delete(evento_id, _SCOPE):
            raise NotFoundError("Evento não encontrado")
