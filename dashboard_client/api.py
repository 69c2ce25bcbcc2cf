"""
Thin HTTP client for the portfolio API.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A non-success envelope (or a transport failure) from the API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class PortfolioApi:
    """
    Issues requests through ``session`` (a ``requests.Session`` or anything
    with the same ``request()`` signature) and unwraps response envelopes.
    The session keeps the ``token`` cookie; the token from sign-in responses
    is also sent as a bearer header.
    """

    def __init__(
        self,
        session: Any = None,
        base_url: str = "http://localhost:4000",
        api_prefix: str = "/api/v1",
        timeout: float = 30.0,
    ):
        self.session = session if session is not None else requests.Session()
        self.base_url = base_url.rstrip("/")
        self.api_prefix = api_prefix
        self.timeout = timeout
        self.token: Optional[str] = None

    def url(self, path: str) -> str:
        return f"{self.base_url}{self.api_prefix}{path}"

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict] = None,
        data: Optional[dict] = None,
        files: Optional[dict] = None,
    ) -> dict:
        kwargs: dict = {"timeout": self.timeout}
        if json is not None:
            kwargs["json"] = json
        if data is not None:
            kwargs["data"] = data
        if files:
            kwargs["files"] = files
        if self.token:
            kwargs["headers"] = {"Authorization": f"Bearer {self.token}"}

        try:
            response = self.session.request(method, self.url(path), **kwargs)
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise ApiError(0, str(exc)) from exc

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if response.status_code >= 400 or not body.get("success", False):
            message = body.get("message") or f"Request failed with status {response.status_code}"
            raise ApiError(response.status_code, message)
        if body.get("token"):
            self.token = body["token"]
        return body

    def get(self, path: str) -> dict:
        return self.request("GET", path)

    def post(self, path: str, **kwargs) -> dict:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs) -> dict:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str) -> dict:
        return self.request("DELETE", path)
