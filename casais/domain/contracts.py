"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class CreateAccountInput:
    """Validated inputs required to register an account."""

    username: str
    password_hash: str


@dataclass(slots=True)
class CasalFields:
    """Casal attributes supplied by a create or update request.

    On update only truthy values replace the stored ones.
    """

    name: str | None = None
    desc: str | None = None
    niver_h: str | None = None
    niver_m: str | None = None
    tel: str | None = None


@dataclass(slots=True)
class CasalSimpleFields:
    name: str | None = None
    age: int | None = None


@dataclass(slots=True)
class EventoFields:
    titulo: str | None = None
    descricao: str | None = None
    data: str | None = None


@dataclass(slots=True)
class ImageUpload:
    """In-memory file buffer received with a multipart request."""

    data: bytes
    filename: str
    content_type: str
