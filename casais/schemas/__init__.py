"""Request and response schemas for the HTTP layer."""

from .account import CredentialsRequest, HistoryRenameRequest, HistoryRequest, HistoryResponse, LoginResponse
from .casal import CasalOut, CasalSimpleIn, CasalSimpleOut
from .common import StatusResponse
from .evento import EventoIn, EventoOut

__all__ = [
    "CasalOut",
    "CasalSimpleIn",
    "CasalSimpleOut",
    "CredentialsRequest",
    "EventoIn",
    "EventoOut",
    "HistoryRenameRequest",
    "HistoryRequest",
    "HistoryResponse",
    "LoginResponse",
    "StatusResponse",
]
