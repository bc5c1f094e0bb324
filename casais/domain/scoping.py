"""Query filter contract applied to every resource read, update and delete.

Owned resources are always filtered by ``user_id = <requester>`` and
``is_delete = false``. Shared resources (eventos) drop the owner predicate but
keep the deletion flag. Listing optionally narrows by a case-insensitive
substring of the name/title column and paginates with the legacy defaults of
five items per page starting at page one.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Generic, Sequence, TypeVar

DEFAULT_PER_PAGE = 5
DEFAULT_PAGE = 1
MAX_PER_PAGE = 100
# OFFSET is bound as a Postgres bigint
MAX_OFFSET = 2**63 - 1

_LEADING_INT = re.compile(r"^\s*([+-]?)(\d+)")

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ResourceScope:
    """Ownership and soft-delete predicates for one request."""

    owner_id: str | None
    shared: bool = False

    def __post_init__(self) -> None:
        if not self.shared and not self.owner_id:
            raise ValueError("owned resources require an owner id")

    @classmethod
    def owned_by(cls, owner_id: str) -> "ResourceScope":
        return cls(owner_id=owner_id, shared=False)

    @classmethod
    def shared_resource(cls) -> "ResourceScope":
        return cls(owner_id=None, shared=True)

    def sql_clauses(self) -> tuple[list[str], list[Any]]:
        """Return ``WHERE`` fragments and their parameters for psycopg."""
        clauses = ["is_delete = false"]
        params: list[Any] = []
        if not self.shared:
            clauses.append("user_id = %s")
            params.append(self.owner_id)
        return clauses, params

    def admits(self, *, user_id: str | None, is_delete: bool) -> bool:
        """Evaluate the same predicates against an in-memory record."""
        if is_delete:
            return False
        if self.shared:
            return True
        return user_id == self.owner_id


def _parse_leading_int(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    sign, digits = match.groups()
    number = int(digits) if len(digits) <= 19 else MAX_OFFSET
    return -number if sign == "-" else number


@dataclass(frozen=True, slots=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    per_page: int = DEFAULT_PER_PAGE

    @classmethod
    def parse(cls, page: Any = None, per_page: Any = None) -> "PageRequest":
        """Build a request from raw query values.

        ``per_page`` falls back to 5 when missing, non-numeric or not positive.
        ``page`` falls back to 1 and is floored at 1. Both are capped so the
        resulting OFFSET stays within a bigint.
        """
        size = _parse_leading_int(per_page)
        if not size or size < 1:
            size = DEFAULT_PER_PAGE
        size = min(size, MAX_PER_PAGE)
        number = _parse_leading_int(page) or DEFAULT_PAGE
        number = min(max(number, 1), MAX_OFFSET // size + 1)
        return cls(page=number, per_page=size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @property
    def limit(self) -> int:
        return self.per_page


@dataclass(slots=True)
class Page(Generic[T]):
    items: list[T]
    current_page: int
    per_page: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.per_page)

    @classmethod
    def slice(cls, matching: Sequence[T], request: PageRequest) -> "Page[T]":
        """Paginate an already filtered sequence held in memory."""
        window = list(matching[request.offset : request.offset + request.limit])
        return cls(items=window, current_page=request.page, per_page=request.per_page, total=len(matching))


def search_pattern(term: str | None) -> str | None:
    """Return an ``ILIKE`` pattern matching ``term`` as a literal substring."""
    if not term:
        return None
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def matches_search(value: str | None, term: str | None) -> bool:
    if not term:
        return True
    return term.casefold() in (value or "").casefold()


def merge_truthy(current: Any, supplied: Any) -> Any:
    """Partial-merge rule: a falsy supplied value keeps the stored one."""
    return supplied if supplied else current
