"""Serialised casal representations, keeping the legacy camelCase keys."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import PagedResponse, StatusResponse, StrictRequest
from ..domain.resources import Casal, CasalSimple


class CasalOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    desc: str
    niver_h: str = Field(alias="niverH")
    niver_m: str = Field(alias="niverM")
    tel: str
    image: str
    public_id: str
    date: datetime

    @classmethod
    def from_domain(cls, casal: Casal) -> "CasalOut":
        return cls(
            id=casal.id,
            name=casal.name,
            desc=casal.desc,
            niver_h=casal.niver_h,
            niver_m=casal.niver_m,
            tel=casal.tel,
            image=casal.image,
            public_id=casal.public_id,
            date=casal.date,
        )


class CasalResponse(StatusResponse):
    casal: CasalOut


class CasalListResponse(PagedResponse):
    casal: list[CasalOut]


class CasalSimpleIn(StrictRequest):
    name: str | None = None
    age: int | None = None


class CasalSimpleOut(BaseModel):
    id: str
    name: str
    age: int
    date: datetime

    @classmethod
    def from_domain(cls, casal: CasalSimple) -> "CasalSimpleOut":
        return cls(id=casal.id, name=casal.name, age=casal.age, date=casal.date)


class CasalSimpleResponse(StatusResponse):
    casal: CasalSimpleOut


class CasalSimpleListResponse(PagedResponse):
    casal: list[CasalSimpleOut]
