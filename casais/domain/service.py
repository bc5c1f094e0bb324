"""Account service orchestrating registration, login and the name history."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .account import Account
from .contracts import CreateAccountInput
from .errors import AccountExistsError, InvalidCredentialsError, InvalidInputError, NotFoundError
from ..repository import AccountRepository
from ..security.passwords import hash_password, verify_password
from ..security.tokens import TokenService

logger = logging.getLogger(__name__)

_BAD_CREDENTIALS = "Nome de usuário ou senha está incorreta!"


@dataclass(slots=True)
class LoginResult:
    token: str
    account_id: str
    expires_in: int


class AccountService:
    """Account workflows backed by the credential store."""

    def __init__(self, repository: AccountRepository, tokens: TokenService) -> None:
        self._repository = repository
        self._tokens = tokens

    def register(self, username: str | None, password: str | None) -> Account:
        """Create an account with a hashed password.

        Raises ``InvalidInputError`` for missing fields and
        ``AccountExistsError`` when the username is taken.
        """
        username = (username or "").strip()
        if not username or not password:
            raise InvalidInputError("Adicione username e password")
        if self._repository.find_by_username(username) is not None:
            raise AccountExistsError(f"Usuario {username} já existe!")
        account = self._repository.create_account(
            CreateAccountInput(username=username, password_hash=hash_password(password))
        )
        logger.info("registered account %s", account.account_id)
        return account

    def login(self, username: str | None, password: str | None) -> LoginResult:
        username = (username or "").strip()
        if not username or not password:
            raise InvalidInputError("Adicione username e password")
        account = self._repository.find_by_username(username)
        if account is None or not verify_password(password, account.password_hash):
            raise InvalidCredentialsError(_BAD_CREDENTIALS)
        token = self._tokens.issue(account.account_id, account.role, username=account.username)
        return LoginResult(token=token, account_id=account.account_id, expires_in=self._tokens.ttl_seconds)

    def get_account(self, account_id: str) -> Account:
        account = self._repository.get_account(account_id)
        if account is None:
            raise NotFoundError("Usuário não encontrado")
        return account

    # -- name history -------------------------------------------------------

    def history(self, account_id: str) -> list[str]:
        return list(self.get_account(account_id).name_history)

    def add_history(self, account_id: str, name: str | None) -> list[str]:
        """Append ``name`` unless the exact string is already recorded."""
        value = (name or "").strip()
        if not value:
            raise InvalidInputError("Nome é obrigatório")
        history = self.history(account_id)
        if value in history:
            return history
        history.append(value)
        return self._save_history(account_id, history)

    def rename_history(self, account_id: str, old_name: str | None, name: str | None) -> list[str]:
        """Replace ``old_name`` in place; a duplicate target collapses into one entry."""
        old_value = (old_name or "").strip()
        value = (name or "").strip()
        if not old_value or not value:
            raise InvalidInputError("Informe o nome antigo e o novo nome")
        history = self.history(account_id)
        if old_value not in history:
            raise NotFoundError(f"Nome {old_value} não está no histórico")
        if value in history and value != old_value:
            history.remove(old_value)
        else:
            history[history.index(old_value)] = value
        return self._save_history(account_id, history)

    def remove_history(self, account_id: str, name: str) -> list[str]:
        history = self.history(account_id)
        if name not in history:
            raise NotFoundError(f"Nome {name} não está no histórico")
        history.remove(name)
        return self._save_history(account_id, history)

    def _save_history(self, account_id: str, history: list[str]) -> list[str]:
        account = self._repository.replace_name_history(account_id, history)
        if account is None:
            raise NotFoundError("Usuário não encontrado")
        return list(account.name_history)
