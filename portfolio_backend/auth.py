"""
Session tokens, the session cookie and the authenticated-user dependency.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, Request, Response
from werkzeug.security import check_password_hash, generate_password_hash

from portfolio_backend.config import Settings
from portfolio_backend.db import DocumentStore
from portfolio_backend.dependencies import get_app_settings, get_store
from portfolio_backend.errors import (
    AuthenticationError,
    AuthTokenError,
    InvalidIdentifierError,
)
from portfolio_backend.schemas import User

COOKIE_NAME = "token"
USERS = "users"
ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return check_password_hash(password_hash, password)


def issue_token(user_id: str, settings: Settings) -> str:
    expires = datetime.now(timezone.utc) + timedelta(days=settings.jwt_expires_days)
    return jwt.encode(
        {"id": user_id, "exp": expires}, settings.jwt_secret_key, algorithm=ALGORITHM
    )


def decode_token(token: str, settings: Settings) -> dict:
    """Raises PyJWT errors for bad or expired tokens."""
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[ALGORITHM])


def _cookie_options(settings: Settings) -> dict:
    if settings.cookie_secure:
        return {"httponly": True, "samesite": "none", "secure": True}
    return {"httponly": True, "samesite": "lax", "secure": False}


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    expires = datetime.now(timezone.utc) + timedelta(days=settings.cookie_expires_days)
    response.set_cookie(
        COOKIE_NAME,
        token,
        expires=expires,
        max_age=settings.cookie_expires_days * 24 * 60 * 60,
        **_cookie_options(settings),
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(COOKIE_NAME, **_cookie_options(settings))


def _request_token(request: Request) -> Optional[str]:
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def require_user(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    store: DocumentStore = Depends(get_store),
) -> User:
    token = _request_token(request)
    if not token:
        raise AuthenticationError()
    payload = decode_token(token, settings)
    user_id = payload.get("id")
    if not isinstance(user_id, str):
        raise AuthTokenError()
    try:
        document = store.get(USERS, user_id)
    except InvalidIdentifierError as exc:
        raise AuthTokenError() from exc
    if document is None:
        raise AuthenticationError()
    return User.model_validate(document)
