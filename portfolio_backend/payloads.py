"""
Request body parsing shared by every write endpoint.

The dashboard sends JSON for some calls and multipart form data for others,
so one parser turns either into a validated form model plus the uploaded
files, keyed by form field name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel
from starlette.datastructures import UploadFile

from portfolio_backend.errors import ValidationError

FormT = TypeVar("FormT", bound=BaseModel)


@dataclass
class Payload(Generic[FormT]):
    data: FormT
    files: Dict[str, UploadFile] = field(default_factory=dict)


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


async def read_body(request: Request) -> tuple[dict, Dict[str, UploadFile]]:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError as exc:
            raise ValidationError("Request body is not valid JSON") from exc
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        return {k: v for k, v in body.items() if not _blank(v)}, {}

    if not (
        content_type.startswith("multipart/form-data")
        or content_type.startswith("application/x-www-form-urlencoded")
    ):
        return {}, {}

    form = await request.form()
    values: dict = {}
    files: Dict[str, UploadFile] = {}
    for key in form.keys():
        items = form.getlist(key)
        uploads = [item for item in items if isinstance(item, UploadFile)]
        if uploads:
            # Browsers send an empty part for an untouched file input.
            if uploads[0].filename:
                files[key] = uploads[0]
            continue
        texts = [item for item in items if not _blank(item)]
        if texts:
            values[key] = texts if len(texts) > 1 else texts[0]
    return values, files


def parse_payload(model: Type[FormT]) -> Callable:
    """Build a dependency yielding ``Payload[model]`` for the current request."""

    async def dependency(request: Request) -> Payload[FormT]:
        values, files = await read_body(request)
        return Payload(data=model.model_validate(values), files=files)

    return dependency
