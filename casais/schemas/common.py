from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StrictRequest(BaseModel):
    """Base for JSON bodies: unknown keys are rejected with HTTP 400."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class StatusResponse(BaseModel):
    status: bool = True
    title: str | None = None


class PagedResponse(StatusResponse):
    current_page: int
    total: int
    pages: int
