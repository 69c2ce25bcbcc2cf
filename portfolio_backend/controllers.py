"""
Resource controllers: create/list/read/update/delete plus asset lifecycle.

One ``ResourceController`` serves every resource kind; a ``ResourceKind``
describes what differs between them (collection, document model, required
fields, owned assets, sort order, messages).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Generic, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel
from starlette.datastructures import UploadFile

from portfolio_backend import schemas
from portfolio_backend.assets import AssetManager
from portfolio_backend.db import DocumentStore, Sort
from portfolio_backend.errors import NotFoundError, StorageError, ValidationError
from portfolio_backend.schemas import Asset, Document

logger = logging.getLogger(__name__)

DocT = TypeVar("DocT", bound=Document)

MISSING_FIELDS = "Please Provide All The Required Fields!"


@dataclass(frozen=True)
class AssetSlot:
    """An asset owned by a document and the form field it is uploaded under."""

    attribute: str
    upload_field: str
    folder: str
    prefix: str
    missing_message: str


@dataclass(frozen=True)
class ResourceKind(Generic[DocT]):
    collection: str
    model: Type[DocT]
    label: str
    required: Sequence[str]
    assets: Sequence[AssetSlot] = ()
    sort: Optional[Sort] = None
    missing_fields_message: str = MISSING_FIELDS
    messages: Dict[str, str] = field(default_factory=dict)

    @property
    def not_found_message(self) -> str:
        return f"{self.label} Not Found. No {self.label} Exists With This ID"


class ResourceController(Generic[DocT]):
    def __init__(self, kind: ResourceKind[DocT], store: DocumentStore, assets: AssetManager):
        self.kind = kind
        self.store = store
        self.assets = assets

    # -- helpers -----------------------------------------------------------

    def fields_from_form(self, form: BaseModel) -> dict:
        """Map a form onto document fields; overridden where shapes differ."""
        return form.model_dump(by_alias=True, exclude_none=True)

    def _check_required(self, form: BaseModel) -> None:
        for name in self.kind.required:
            value = getattr(form, name, None)
            if value is None or value == "" or value == []:
                raise ValidationError(self.kind.missing_fields_message)

    def _build(self, document: dict) -> DocT:
        return self.kind.model.model_validate(document)

    def _load(self, doc_id: str) -> DocT:
        document = self.store.get(self.kind.collection, doc_id)
        if document is None:
            raise NotFoundError(self.kind.not_found_message)
        return self._build(document)

    def _upload_all(
        self, files: Dict[str, UploadFile], slots: Sequence[AssetSlot]
    ) -> Dict[str, Asset]:
        uploaded: Dict[str, Asset] = {}
        try:
            for slot in slots:
                uploaded[slot.attribute] = self.assets.upload(
                    files[slot.upload_field], slot.folder, slot.prefix
                )
        except StorageError:
            self.assets.discard(uploaded.values(), f"{self.kind.collection}: upload aborted")
            raise
        return uploaded

    # -- operations --------------------------------------------------------

    def create(self, form: BaseModel, files: Dict[str, UploadFile]) -> DocT:
        for slot in self.kind.assets:
            if slot.upload_field not in files:
                raise ValidationError(slot.missing_message)
        self._check_required(form)

        document = self.fields_from_form(form)
        # Validate scalars before anything reaches remote storage.
        if self.kind.assets:
            placeholders = {
                slot.attribute: {"storageId": "pending", "url": "pending"}
                for slot in self.kind.assets
            }
            self._build({**document, **_aliased(self.kind.model, placeholders)})
        else:
            self._build(document)

        uploaded = self._upload_all(files, self.kind.assets)
        try:
            instance = self._build(
                {**document, **_aliased(self.kind.model, _dump_assets(uploaded))}
            )
            stored = self.store.insert(self.kind.collection, instance.to_document())
        except Exception:
            self.assets.discard(uploaded.values(), f"{self.kind.collection}: insert failed")
            raise
        logger.info("Created %s %s", self.kind.collection, stored["_id"])
        return self._build(stored)

    def list(self) -> list[DocT]:
        return [
            self._build(document)
            for document in self.store.find(self.kind.collection, sort=self.kind.sort)
        ]

    def get(self, doc_id: str) -> DocT:
        return self._load(doc_id)

    def update(self, doc_id: str, form: BaseModel, files: Dict[str, UploadFile]) -> DocT:
        current = self._load(doc_id)
        changes = self.fields_from_form(form)
        slots = [slot for slot in self.kind.assets if slot.upload_field in files]

        # Reject bad field values before touching storage.
        merged = {**current.to_document(), **changes}
        self._build(merged)

        uploaded = self._upload_all(files, slots)
        try:
            changes.update(_aliased(self.kind.model, _dump_assets(uploaded)))
            instance = self._build({**current.to_document(), **changes})
            stored = self.store.update(
                self.kind.collection, doc_id, instance.to_document()
            )
            if stored is None:
                raise NotFoundError(self.kind.not_found_message)
        except Exception:
            self.assets.discard(uploaded.values(), f"{self.kind.collection}: update failed")
            raise

        replaced = [getattr(current, slot.attribute) for slot in slots]
        failures = []
        for old in replaced:
            if old is None:
                continue
            try:
                self.assets.release(old)
            except StorageError as exc:
                self.assets.record_orphan(old, f"{self.kind.collection}: replaced", exc)
                failures.append(exc)
        if failures:
            raise failures[0]
        return self._build(stored)

    def delete(self, doc_id: str) -> None:
        current = self._load(doc_id)
        for slot in self.kind.assets:
            asset = getattr(current, slot.attribute, None)
            if asset is not None:
                self.assets.release(asset)
        self.store.delete(self.kind.collection, doc_id)
        logger.info("Deleted %s %s", self.kind.collection, doc_id)


def _dump_assets(assets: Dict[str, Asset]) -> dict:
    return {name: asset.model_dump(by_alias=True) for name, asset in assets.items()}


def _aliased(model: Type[BaseModel], values: dict) -> dict:
    """Re-key attribute names to their wire aliases for ``model``."""
    out = {}
    for name, value in values.items():
        info = model.model_fields.get(name)
        out[(info.alias if info and info.alias else name)] = value
    return out


class TimelineController(ResourceController[schemas.Timeline]):
    def fields_from_form(self, form: schemas.TimelineForm) -> dict:
        fields = form.model_dump(by_alias=True, exclude_none=True)
        period = {k: fields.pop(k) for k in ("from", "to") if k in fields}
        if period:
            fields["timeline"] = period
        return fields


PROJECT = ResourceKind(
    collection="projects",
    model=schemas.Project,
    label="Project",
    required=(
        "title",
        "description",
        "git_repo_link",
        "project_link",
        "stack",
        "technologies",
        "deployed",
    ),
    assets=(
        AssetSlot(
            attribute="project_banner",
            upload_field="projectBanner",
            folder="PROJECT IMAGES",
            prefix="Project_Image",
            missing_message="Project Banner Image Is Required!",
        ),
    ),
    messages={
        "created": "New Project Added Successfully!",
        "updated": "Project Updated Successfully!",
        "deleted": "Project Deleted Successfully!",
    },
)

SKILL = ResourceKind(
    collection="skills",
    model=schemas.Skill,
    label="Skill",
    required=("title", "proficiency", "category"),
    assets=(
        AssetSlot(
            attribute="svg",
            upload_field="svg",
            folder="SKILL IMAGES",
            prefix="Skill_Image",
            missing_message="Image For Skill Is Required!",
        ),
    ),
    messages={
        "created": "New Skill Added Successfully!",
        "updated": "Skill Updated Successfully!",
        "deleted": "Skill Deleted Successfully!",
    },
)

SOFTWARE_APPLICATION = ResourceKind(
    collection="software_applications",
    model=schemas.SoftwareApplication,
    label="Software Application",
    required=("name",),
    missing_fields_message="Please Provide The Software's Name!",
    assets=(
        AssetSlot(
            attribute="svg",
            upload_field="svg",
            folder="SOFTWARE IMAGES",
            prefix="Software_Image",
            missing_message="Software Application Icon/Image Is Required!",
        ),
    ),
    messages={
        "created": "New Software Application Added Successfully!",
        "deleted": "Software Application Deleted Successfully!",
    },
)

TIMELINE = ResourceKind(
    collection="timelines",
    model=schemas.Timeline,
    label="Timeline",
    required=("title", "description", "from_", "to"),
    messages={
        "created": "Timeline Added Successfully!",
        "deleted": "Timeline Deleted Successfully!",
    },
)

MESSAGE = ResourceKind(
    collection="messages",
    model=schemas.Message,
    label="Message",
    required=("sender_name", "subject", "message"),
    sort=("createdAt", -1),
    messages={
        "created": "Message Sent Successfully",
        "deleted": "Message Deleted Successfully",
    },
)

EXPERIENCE = ResourceKind(
    collection="experiences",
    model=schemas.Experience,
    label="Experience",
    required=("role", "company", "date", "desc", "skills"),
    assets=(
        AssetSlot(
            attribute="experience_banner",
            upload_field="experienceBanner",
            folder="EXPERIENCE IMAGES",
            prefix="Experience_Image",
            missing_message="Experience Banner Image Is Required!",
        ),
    ),
    sort=("date", -1),
    messages={
        "created": "Experience Added Successfully!",
        "updated": "Experience Updated Successfully!",
        "deleted": "Experience Deleted Successfully!",
    },
)
