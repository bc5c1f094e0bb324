"""Owned and shared resources kept in the resource store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class Casal:
    """Couple profile owned by a single account."""

    id: str
    user_id: str
    name: str
    date: datetime
    desc: str = ""
    niver_h: str = ""
    niver_m: str = ""
    tel: str = ""
    image: str = ""
    public_id: str = ""
    is_delete: bool = False


@dataclass(slots=True)
class CasalSimple:
    id: str
    user_id: str
    name: str
    age: int
    date: datetime
    is_delete: bool = False


@dataclass(slots=True)
class Evento:
    """Calendar entry visible to every authenticated account."""

    id: str
    titulo: str
    data: str
    created_at: datetime
    descricao: str = ""
    criado_por: str | None = None
    is_delete: bool = False
