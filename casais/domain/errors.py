"""Exceptions raised by domain services and translated at the HTTP boundary."""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for expected domain failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(ServiceError):
    pass


class AccountExistsError(ServiceError):
    pass


class InvalidCredentialsError(ServiceError):
    pass


class NotFoundError(ServiceError):
    pass
