"""
FastAPI application entry point for the portfolio backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio_backend.config import Settings, get_settings
from portfolio_backend.db import DocumentStore
from portfolio_backend.dependencies import build_mailer, build_storage, build_store
from portfolio_backend.mailer import Mailer
from portfolio_backend.middleware import install_error_handlers
from portfolio_backend.routes import api_routers, health_router
from portfolio_backend.storage import StorageClient

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[DocumentStore] = None,
    storage: Optional[StorageClient] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    """
    Build the app with its clients. Clients not passed in are constructed
    from settings; all of them are closed when the app shuts down.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        for name in ("store", "storage", "mailer"):
            try:
                getattr(app.state, name).close()
            except Exception:
                logger.exception("Failed to close %s client", name)

    app = FastAPI(title="Portfolio Backend (FastAPI)", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store if store is not None else build_store(settings)
    app.state.storage = storage if storage is not None else build_storage(settings)
    app.state.mailer = mailer if mailer is not None else build_mailer(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    app.include_router(health_router)
    for router in api_routers:
        app.include_router(router, prefix=settings.api_prefix)
    return app
