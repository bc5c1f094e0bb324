"""Account and name-history payloads."""

from __future__ import annotations

from pydantic import Field

from .common import StatusResponse, StrictRequest


class CredentialsRequest(StrictRequest):
    # Optional so a missing field yields the legacy message instead of a schema error.
    username: str | None = None
    password: str | None = None


class LoginResponse(StatusResponse):
    message: str
    token: str
    id: str
    expires_in: int


class HistoryRequest(StrictRequest):
    name: str | None = None


class HistoryRenameRequest(StrictRequest):
    old_name: str | None = Field(default=None, alias="oldName")
    name: str | None = None


class HistoryResponse(StatusResponse):
    history: list[str]
