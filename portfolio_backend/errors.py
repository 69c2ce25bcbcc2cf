"""
Error taxonomy shared by controllers, adapters and the normalization stage.

Every error carries the HTTP status it renders with, so the normalization
stage never needs to know which resource raised it.
"""

from __future__ import annotations

from typing import Mapping, Optional


class PortfolioError(Exception):
    """Base class for errors that map directly onto an error envelope."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(PortfolioError):
    """Missing or malformed input."""

    status_code = 400


class InvalidIdentifierError(ValidationError):
    """An identifier that cannot be cast to the store's id format."""

    def __init__(self, path: str, value: object = None):
        super().__init__(f"Invalid {path}")
        self.path = path
        self.value = value


class NotFoundError(PortfolioError):
    status_code = 404


class StorageError(PortfolioError):
    """A remote asset operation failed; ``cause`` holds the upstream error."""

    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        detail = f"{message}: {cause}" if cause is not None else message
        super().__init__(detail)
        self.cause = cause


class DuplicateKeyError(PortfolioError):
    status_code = 400

    def __init__(self, key_value: Mapping[str, object]):
        self.key_value = dict(key_value)
        super().__init__(f"Duplicate {', '.join(self.key_value)} Entered")


class AuthTokenError(PortfolioError):
    status_code = 400

    def __init__(self, expired: bool = False):
        self.expired = expired
        if expired:
            message = "Json Web Token is expired, Try again!"
        else:
            message = "Json Web Token is invalid, Try again!"
        super().__init__(message)


class AuthenticationError(PortfolioError):
    status_code = 401

    def __init__(self, message: str = "User Not Authenticated!"):
        super().__init__(message)


class InternalError(PortfolioError):
    status_code = 500

    def __init__(self, message: str = "Internal Server Error"):
        super().__init__(message)
