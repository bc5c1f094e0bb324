from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Account roles; ``leader`` is the elevated capability."""

    USER = "user"
    LEADER = "leader"


@dataclass(slots=True)
class Account:
    """Aggregate root for a login identity and its casal name history."""

    account_id: str
    username: str
    password_hash: str
    created_at: datetime
    role: Role = Role.USER
    name_history: list[str] = field(default_factory=list)
