"""
Factories for running the app entirely on in-memory backends.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import FastAPI

from portfolio_backend.app import create_app
from portfolio_backend.config import Settings
from portfolio_backend.db import InMemoryDocumentStore
from portfolio_backend.mailer import InMemoryMailer
from portfolio_backend.storage import InMemoryStorageClient

REGISTRATION = {
    "fullName": "Ada Lovelace",
    "email": "ada@example.com",
    "phone": "5551234567",
    "aboutMe": "Writes programs for engines.",
    "password": "analytical-engine",
    "portfolioURL": "https://ada.example.com",
    "githubURL": "https://github.com/ada",
}


def image(name: str = "banner.png", content: bytes = b"\x89PNG fake image") -> tuple:
    return (name, content, "image/png")


def make_settings(**overrides) -> Settings:
    values = {
        "jwt_secret_key": "test-secret",
        "cookie_secure": False,
        "dashboard_url": "http://dashboard.test",
        "portfolio_url": "http://portfolio.test",
        "use_in_memory_backends": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@dataclass
class InMemoryApp:
    app: FastAPI
    settings: Settings
    store: InMemoryDocumentStore
    storage: InMemoryStorageClient
    mailer: InMemoryMailer


def in_memory_app(**setting_overrides) -> InMemoryApp:
    settings = make_settings(**setting_overrides)
    store = InMemoryDocumentStore()
    storage = InMemoryStorageClient()
    mailer = InMemoryMailer()
    app = create_app(settings, store=store, storage=storage, mailer=mailer)
    return InMemoryApp(app, settings, store, storage, mailer)
