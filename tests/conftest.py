from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from casais.config import Settings
from casais.domain.account import Account, Role
from casais.domain.contracts import CreateAccountInput
from casais.domain.errors import AccountExistsError
from casais.domain.scoping import Page, PageRequest, ResourceScope, matches_search
from casais.main import create_app, install_services
from casais.media import InMemoryMediaBridge
from casais.security.rate_limiter import SlidingWindowRateLimiter


class FakeAccountRepository:
    """In-memory stand-in for the Postgres credential store."""

    def __init__(self) -> None:
        self.accounts: dict[str, Account] = {}

    def create_account(self, payload: CreateAccountInput) -> Account:
        if self.find_by_username(payload.username) is not None:
            raise AccountExistsError(f"Usuario {payload.username} já existe!")
        account = Account(
            account_id=str(uuid.uuid4()),
            username=payload.username,
            password_hash=payload.password_hash,
            created_at=datetime.now(timezone.utc),
        )
        self.accounts[account.account_id] = account
        return account

    def find_by_username(self, username: str) -> Account | None:
        for account in self.accounts.values():
            if account.username == username:
                return account
        return None

    def get_account(self, account_id: str) -> Account | None:
        return self.accounts.get(account_id)

    def replace_name_history(self, account_id: str, history: list[str]) -> Account | None:
        account = self.accounts.get(account_id)
        if account is None:
            return None
        account.name_history = list(history)
        return account

    def set_role(self, account_id: str, role: Role) -> None:
        self.accounts[account_id].role = role


class FakeScopedRepository:
    """Applies the same ``ResourceScope`` predicates as the SQL repositories."""

    owner_attr: str | None = "user_id"
    search_attr = "name"

    def __init__(self) -> None:
        self.records: dict[str, Any] = {}

    def _admits(self, record: Any, scope: ResourceScope) -> bool:
        owner = getattr(record, self.owner_attr) if self.owner_attr else None
        return scope.admits(user_id=owner, is_delete=record.is_delete)

    def insert(self, record: Any) -> Any:
        stored = replace(record, id=record.id or str(uuid.uuid4()), is_delete=False)
        self.records[stored.id] = stored
        return replace(stored)

    def list_page(self, scope: ResourceScope, page: PageRequest, search: str | None = None) -> Page:
        matching = [
            replace(record)
            for record in self.records.values()
            if self._admits(record, scope) and matches_search(getattr(record, self.search_attr), search)
        ]
        return Page.slice(matching, page)

    def get(self, resource_id: str, scope: ResourceScope) -> Any:
        record = self.records.get(resource_id)
        if record is None or not self._admits(record, scope):
            return None
        return replace(record)

    def update(self, record: Any, scope: ResourceScope) -> Any:
        if self.get(record.id, scope) is None:
            return None
        self.records[record.id] = replace(record)
        return replace(record)

    def soft_delete(self, resource_id: str, scope: ResourceScope) -> bool:
        if self.get(resource_id, scope) is None:
            return False
        self.records[resource_id].is_delete = True
        return True


class FakeCasalRepository(FakeScopedRepository):
    pass


class FakeCasalSimpleRepository(FakeScopedRepository):
    pass


class FakeEventoRepository(FakeScopedRepository):
    owner_attr = None
    search_attr = "titulo"


@dataclass
class ApiHarness:
    client: TestClient
    app: FastAPI
    accounts: FakeAccountRepository
    casais: FakeCasalRepository
    casais_simples: FakeCasalSimpleRepository
    eventos: FakeEventoRepository
    media: Any

    def register(self, username: str, password: str = "segredo") -> None:
        response = self.client.post("/register", json={"username": username, "password": password})
        assert response.status_code == 201, response.text

    def login(self, username: str, password: str = "segredo") -> tuple[str, str]:
        response = self.client.post("/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        body = response.json()
        return body["token"], body["id"]

    def signup(self, username: str, password: str = "segredo") -> tuple[dict[str, str], str]:
        """Register and log in, returning the auth headers and account id."""
        self.register(username, password)
        token, account_id = self.login(username, password)
        return {"Authorization": f"Bearer {token}"}, account_id

    def leader(self, username: str = "lider") -> tuple[dict[str, str], str]:
        _, account_id = self.signup(username)
        self.accounts.set_role(account_id, Role.LEADER)
        token, _ = self.login(username)
        return {"Authorization": f"Bearer {token}"}, account_id


@pytest.fixture
def settings() -> Settings:
    return Settings(jwt_secret="test-secret", database_url="", media_backend="memory", log_level="WARNING")


def build_harness(
    settings: Settings,
    *,
    media: Any = None,
    rate_limiter: Any = None,
    raise_server_exceptions: bool = True,
) -> ApiHarness:
    app = create_app(settings, lifespan=None)
    accounts = FakeAccountRepository()
    casais = FakeCasalRepository()
    casais_simples = FakeCasalSimpleRepository()
    eventos = FakeEventoRepository()
    media = media if media is not None else InMemoryMediaBridge()
    install_services(
        app,
        accounts=accounts,
        casais=casais,
        casais_simples=casais_simples,
        eventos=eventos,
        media=media,
        rate_limiter=rate_limiter or SlidingWindowRateLimiter(max_requests=1000, window_seconds=60),
    )
    return ApiHarness(
        client=TestClient(app, raise_server_exceptions=raise_server_exceptions),
        app=app,
        accounts=accounts,
        casais=casais,
        casais_simples=casais_simples,
        eventos=eventos,
        media=media,
    )


@pytest.fixture
def api(settings: Settings) -> ApiHarness:
    """Provide a FastAPI test client backed by in-memory stores."""
    harness = build_harness(settings)
    with harness.client:
        yield harness


@pytest.fixture
def make_api(settings: Settings):
    """Build a harness with custom media or rate limiter collaborators."""

    def _make(**kwargs: Any) -> ApiHarness:
        return build_harness(settings, **kwargs)

    return _make
