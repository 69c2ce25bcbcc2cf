"""
Dependency wiring for the FastAPI app.

Clients are built once per application by ``build_*`` and kept on
``app.state``; request handlers reach them through the ``get_*``
dependencies below.
"""

from __future__ import annotations

from fastapi import Depends, Request

from portfolio_backend.assets import AssetManager
from portfolio_backend.config import Settings
from portfolio_backend.controllers import (
    EXPERIENCE,
    MESSAGE,
    PROJECT,
    SKILL,
    SOFTWARE_APPLICATION,
    TIMELINE,
    ResourceController,
    TimelineController,
)
from portfolio_backend.db import DocumentStore, InMemoryDocumentStore, SqlDocumentStore
from portfolio_backend.mailer import InMemoryMailer, Mailer, SmtpMailer
from portfolio_backend.storage import (
    InMemoryStorageClient,
    S3StorageClient,
    StorageClient,
)


def build_store(settings: Settings) -> DocumentStore:
    if settings.use_in_memory_backends or not settings.database_url:
        return InMemoryDocumentStore()
    return SqlDocumentStore(settings.database_url)


def build_storage(settings: Settings) -> StorageClient:
    if settings.use_in_memory_backends or not settings.storage_bucket:
        return InMemoryStorageClient()
    return S3StorageClient(
        bucket=settings.storage_bucket,
        region=settings.storage_region or "",
        endpoint=settings.storage_endpoint or "",
        access_key_id=settings.aws_access_key_id or "",
        secret_access_key=settings.aws_secret_access_key or "",
        public_base_url=settings.storage_public_base_url or "",
        connect_timeout=settings.storage_connect_timeout,
        read_timeout=settings.storage_read_timeout,
        max_attempts=settings.storage_max_attempts,
    )


def build_mailer(settings: Settings) -> Mailer:
    if settings.use_in_memory_backends or not settings.smtp_host:
        return InMemoryMailer()
    return SmtpMailer(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_mail or "",
        password=settings.smtp_password or "",
    )


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_storage(request: Request) -> StorageClient:
    return request.app.state.storage


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_asset_manager(
    settings: Settings = Depends(get_app_settings),
    store: DocumentStore = Depends(get_store),
    storage: StorageClient = Depends(get_storage),
) -> AssetManager:
    return AssetManager(storage, store, settings.storage_root_folder)


def controller_for(kind, controller_class=ResourceController):
    """Dependency yielding a controller for ``kind`` bound to this app's clients."""

    def dependency(
        store: DocumentStore = Depends(get_store),
        assets: AssetManager = Depends(get_asset_manager),
    ) -> ResourceController:
        return controller_class(kind, store, assets)

    return dependency


get_project_controller = controller_for(PROJECT)
get_skill_controller = controller_for(SKILL)
get_software_application_controller = controller_for(SOFTWARE_APPLICATION)
get_timeline_controller = controller_for(TIMELINE, TimelineController)
get_message_controller = controller_for(MESSAGE)
get_experience_controller = controller_for(EXPERIENCE)
