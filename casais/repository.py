"""Database repositories for accounts and the casal/evento resources."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Generic, TypeVar

from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.account import Account, Role
from .domain.contracts import CreateAccountInput
from .domain.errors import AccountExistsError
from .domain.resources import Casal, CasalSimple, Evento
from .domain.scoping import Page, PageRequest, ResourceScope, search_pattern

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS accounts (
    account_id    TEXT PRIMARY KEY,
    username      TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    role          TEXT NOT NULL DEFAULT 'user' CHECK (role IN ('user', 'leader')),
    name_history  TEXT[] NOT NULL DEFAULT '{}',
    created_at    TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS casais (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL REFERENCES accounts (account_id),
    name        TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    niver_h     TEXT NOT NULL DEFAULT '',
    niver_m     TEXT NOT NULL DEFAULT '',
    tel         TEXT NOT NULL DEFAULT '',
    image       TEXT NOT NULL DEFAULT '',
    public_id   TEXT NOT NULL DEFAULT '',
    is_delete   BOOLEAN NOT NULL DEFAULT false,
    date        TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS casais_owner_idx ON casais (user_id, is_delete);

CREATE TABLE IF NOT EXISTS casais_simples (
    id        TEXT PRIMARY KEY,
    user_id   TEXT NOT NULL REFERENCES accounts (account_id),
    name      TEXT NOT NULL,
    age       INTEGER NOT NULL,
    is_delete BOOLEAN NOT NULL DEFAULT false,
    date      TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS casais_simples_owner_idx ON casais_simples (user_id, is_delete);

CREATE TABLE IF NOT EXISTS eventos (
    id         TEXT PRIMARY KEY,
    titulo     TEXT NOT NULL,
    descricao  TEXT NOT NULL DEFAULT '',
    data       TEXT NOT NULL,
    criado_por TEXT REFERENCES accounts (account_id),
    is_delete  BOOLEAN NOT NULL DEFAULT false,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""


def ensure_schema(pool: ConnectionPool) -> None:
    """Create the tables used by the API when they do not exist yet."""
    with pool.connection() as conn:
        conn.execute(SCHEMA_SQL)
        conn.commit()


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AccountRepository:
    """Postgres-backed credential store."""

    _COLUMNS = "account_id, username, password_hash, role, name_history, created_at"

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def create_account(self, payload: CreateAccountInput) -> Account:
        """Insert a new account, raising ``AccountExistsError`` on a taken username."""
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO accounts (account_id, username, password_hash, role, name_history, created_at)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    ON CONFLICT (username) DO NOTHING
                    RETURNING {self._COLUMNS}
                    """,
                    (_new_id(), payload.username, payload.password_hash, Role.USER.value, [], _now()),
                )
                row = cur.fetchone()
                conn.commit()
        if row is None:
            raise AccountExistsError(f"Usuario {payload.username} já existe!")
        return self._map_record(row)

    def find_by_username(self, username: str) -> Account | None:
        return self._fetch_one("username = %s", username)

    def get_account(self, account_id: str) -> Account | None:
        return self._fetch_one("account_id = %s", account_id)

    def replace_name_history(self, account_id: str, history: list[str]) -> Account | None:
        """Overwrite the stored name history and return the updated account."""
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"""
                    UPDATE accounts SET name_history = %s
                    WHERE account_id = %s
                    RETURNING {self._COLUMNS}
                    """,
                    (list(history), account_id),
                )
                row = cur.fetchone()
                conn.commit()
        return self._map_record(row) if row else None

    def _fetch_one(self, where: str, value: Any) -> Account | None:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(f"SELECT {self._COLUMNS} FROM accounts WHERE {where}", (value,))
                row = cur.fetchone()
        return self._map_record(row) if row else None

    def _map_record(self, row: tuple) -> Account:
        return Account(
            account_id=row[0],
            username=row[1],
            password_hash=row[2],
            role=Role(row[3]),
            name_history=list(row[4] or []),
            created_at=row[5],
        )


R = TypeVar("R")


class _ScopedRepository(Generic[R]):
    """Shared list/get/soft-delete paths filtered through a ``ResourceScope``."""

    table: str
    columns: tuple[str, ...]
    search_column: str
    order_by: str
    mapper: Callable[[tuple], R]

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    @property
    def _select_list(self) -> str:
        return ", ".join(self.columns)

    def list_page(
        self,
        scope: ResourceScope,
        page: PageRequest,
        search: str | None = None,
    ) -> Page[R]:
        clauses, params = scope.sql_clauses()
        pattern = search_pattern(search)
        if pattern:
            clauses.append(f"{self.search_column} ILIKE %s")
            params.append(pattern)
        where_sql = " AND ".join(clauses)

        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(f"SELECT COUNT(*) FROM {self.table} WHERE {where_sql}", params)
                total = cur.fetchone()[0]
                cur.execute(
                    f"""
                    SELECT {self._select_list}
                    FROM {self.table}
                    WHERE {where_sql}
                    ORDER BY {self.order_by}
                    OFFSET %s LIMIT %s
                    """,
                    [*params, page.offset, page.limit],
                )
                rows = cur.fetchall()

        return Page(
            items=[self.mapper(row) for row in rows],
            current_page=page.page,
            per_page=page.per_page,
            total=total,
        )

    def get(self, resource_id: str, scope: ResourceScope) -> R | None:
        clauses, params = scope.sql_clauses()
        where_sql = " AND ".join(["id = %s", *clauses])
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"SELECT {self._select_list} FROM {self.table} WHERE {where_sql}",
                    [resource_id, *params],
                )
                row = cur.fetchone()
        return self.mapper(row) if row else None

    def soft_delete(self, resource_id: str, scope: ResourceScope) -> bool:
        """Flip ``is_delete``; every other column is left untouched."""
        clauses, params = scope.sql_clauses()
        where_sql = " AND ".join(["id = %s", *clauses])
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"UPDATE {self.table} SET is_delete = true WHERE {where_sql}", [resource_id, *params])
                updated = cur.rowcount
                conn.commit()
        return updated > 0

    def _write(self, sql: str, params: list[Any]) -> R | None:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(sql, params)
                row = cur.fetchone()
                conn.commit()
        return self.mapper(row) if row else None

    def _insert(self, sql: str, params: list[Any]) -> R:
        record = self._write(sql, params)
        if record is None:
            raise RuntimeError(f"insert into {self.table} returned no row")
        return record


def _map_casal(row: tuple) -> Casal:
    return Casal(
        id=row[0],
        user_id=row[1],
        name=row[2],
        desc=row[3],
        niver_h=row[4],
        niver_m=row[5],
        tel=row[6],
        image=row[7],
        public_id=row[8],
        is_delete=row[9],
        date=row[10],
    )


class CasalRepository(_ScopedRepository[Casal]):
    table = "casais"
    columns = ("id", "user_id", "name", "description", "niver_h", "niver_m", "tel", "image", "public_id", "is_delete", "date")
    search_column = "name"
    order_by = "date ASC, id ASC"
    mapper = staticmethod(_map_casal)

    def insert(self, casal: Casal) -> Casal:
        return self._insert(
            f"""
            INSERT INTO casais ({self._select_list})
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {self._select_list}
            """,
            [
                casal.id or _new_id(),
                casal.user_id,
                casal.name,
                casal.desc,
                casal.niver_h,
                casal.niver_m,
                casal.tel,
                casal.image,
                casal.public_id,
                False,
                casal.date,
            ],
        )

    def update(self, casal: Casal, scope: ResourceScope) -> Casal | None:
        """Persist the mutable columns of an already merged record."""
        clauses, params = scope.sql_clauses()
        where_sql = " AND ".join(["id = %s", *clauses])
        return self._write(
            f"""
            UPDATE casais
            SET name = %s, description = %s, niver_h = %s, niver_m = %s, tel = %s, image = %s, public_id = %s
            WHERE {where_sql}
            RETURNING {self._select_list}
            """,
            [
                casal.name,
                casal.desc,
                casal.niver_h,
                casal.niver_m,
                casal.tel,
                casal.image,
                casal.public_id,
                casal.id,
                *params,
            ],
        )


def _map_casal_simple(row: tuple) -> CasalSimple:
    return CasalSimple(id=row[0], user_id=row[1], name=row[2], age=row[3], is_delete=row[4], date=row[5])


class CasalSimpleRepository(_ScopedRepository[CasalSimple]):
    table = "casais_simples"
    columns = ("id", "user_id", "name", "age", "is_delete", "date")
    search_column = "name"
    order_by = "date ASC, id ASC"
    mapper = staticmethod(_map_casal_simple)

    def insert(self, casal: CasalSimple) -> CasalSimple:
        return self._insert(
            f"""
            INSERT INTO casais_simples ({self._select_list})
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING {self._select_list}
            """,
            [casal.id or _new_id(), casal.user_id, casal.name, casal.age, False, casal.date],
        )

    def update(self, casal: CasalSimple, scope: ResourceScope) -> CasalSimple | None:
        clauses, params = scope.sql_clauses()
        where_sql = " AND ".join(["id = %s", *clauses])
        return self._write(
            f"""
            UPDATE casais_simples SET name = %s, age = %s
            WHERE {where_sql}
            RETURNING {self._select_list}
            """,
            [casal.name, casal.age, casal.id, *params],
        )


def _map_evento(row: tuple) -> Evento:
    return Evento(
        id=row[0],
        titulo=row[1],
        descricao=row[2],
        data=row[3],
        criado_por=row[4],
        is_delete=row[5],
        created_at=row[6],
    )


class EventoRepository(_ScopedRepository[Evento]):
    table = "eventos"
    columns = ("id", "titulo", "descricao", "data", "criado_por", "is_delete", "created_at")
    search_column = "titulo"
    order_by = "data ASC, created_at ASC, id ASC"
    mapper = staticmethod(_map_evento)

    def insert(self, evento: Evento) -> Evento:
        return self._insert(
            f"""
            INSERT INTO eventos ({self._select_list})
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING {self._select_list}
            """,
            [
                evento.id or _new_id(),
                evento.titulo,
                evento.descricao,
                evento.data,
                evento.criado_por,
                False,
                evento.created_at,
            ],
        )

    def update(self, evento: Evento, scope: ResourceScope) -> Evento | None:
        clauses, params = scope.sql_clauses()
        where_sql = " AND ".join(["id = %s", *clauses])
        return self._write(
            f"""
            UPDATE eventos SET titulo = %s, descricao = %s, data = %s
            WHERE {where_sql}
            RETURNING {self._select_list}
            """,
            [evento.titulo, evento.descricao, evento.data, evento.id, *params],
        )
