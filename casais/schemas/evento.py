from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import PagedResponse, StatusResponse, StrictRequest
from ..domain.resources import Evento


class EventoIn(StrictRequest):
    titulo: str | None = None
    descricao: str | None = None
    data: str | None = None


class EventoOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    titulo: str
    descricao: str
    data: str
    criado_por: str | None = Field(default=None, alias="criadoPor")
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_domain(cls, evento: Evento) -> "EventoOut":
        return cls(
            id=evento.id,
            titulo=evento.titulo,
            descricao=evento.descricao,
            data=evento.data,
            criado_por=evento.criado_por,
            created_at=evento.created_at,
        )


class EventoResponse(StatusResponse):
    evento: EventoOut


class EventoListResponse(PagedResponse):
    eventos: list[EventoOut]
