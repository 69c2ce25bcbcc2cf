"""
Document store abstraction with a SQLAlchemy implementation and an
in-memory test implementation.

Documents are plain JSON-compatible dicts keyed by ``_id`` and grouped into
named collections, the way a document database would hold them.
"""

from __future__ import annotations

import copy
import re
import time
import uuid
from typing import Any, Dict, Optional, Protocol

from sqlalchemy import JSON, Column, Float, String, create_engine, delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from portfolio_backend.errors import DuplicateKeyError, InvalidIdentifierError

ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")

# Fields that must be unique within their collection.
UNIQUE_KEYS: Dict[str, tuple[str, ...]] = {
    "users": ("email",),
}

Sort = tuple[str, int]


def new_id() -> str:
    return uuid.uuid4().hex


def check_id(doc_id: str) -> str:
    if not isinstance(doc_id, str) or not ID_PATTERN.match(doc_id):
        raise InvalidIdentifierError("_id", doc_id)
    return doc_id


def _sorted(docs: list[dict], sort: Optional[Sort]) -> list[dict]:
    if not sort:
        return docs
    field, direction = sort
    return sorted(
        docs,
        key=lambda doc: (doc.get(field) is not None, doc.get(field) or ""),
        reverse=direction < 0,
    )


def _matches(doc: dict, criteria: dict) -> bool:
    return all(doc.get(key) == value for key, value in criteria.items())


class DocumentStore(Protocol):
    """Interface for document persistence."""

    def insert(self, collection: str, document: dict) -> dict:
        ...

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        ...

    def find(
        self, collection: str, *, sort: Optional[Sort] = None, **criteria: Any
    ) -> list[dict]:
        ...

    def find_one(self, collection: str, **criteria: Any) -> Optional[dict]:
        ...

    def update(self, collection: str, doc_id: str, changes: dict) -> Optional[dict]:
        ...

    def delete(self, collection: str, doc_id: str) -> bool:
        ...

    def close(self) -> None:
        ...


class InMemoryDocumentStore:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, dict]] = {}

    def _collection(self, name: str) -> Dict[str, dict]:
        return self.collections.setdefault(name, {})

    def _check_unique(self, collection: str, document: dict) -> None:
        for key in UNIQUE_KEYS.get(collection, ()):
            value = document.get(key)
            if value is None:
                continue
            for other in self._collection(collection).values():
                if other["_id"] != document.get("_id") and other.get(key) == value:
                    raise DuplicateKeyError({key: value})

    def insert(self, collection: str, document: dict) -> dict:
        doc = copy.deepcopy(document)
        doc.setdefault("_id", new_id())
        now = time.time()
        doc.setdefault("createdAt", now)
        doc["updatedAt"] = now
        self._check_unique(collection, doc)
        self._collection(collection)[doc["_id"]] = doc
        return copy.deepcopy(doc)

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        doc = self._collection(collection).get(check_id(doc_id))
        return copy.deepcopy(doc) if doc else None

    def find(
        self, collection: str, *, sort: Optional[Sort] = None, **criteria: Any
    ) -> list[dict]:
        docs = [
            copy.deepcopy(doc)
            for doc in self._collection(collection).values()
            if _matches(doc, criteria)
        ]
        return _sorted(docs, sort)

    def find_one(self, collection: str, **criteria: Any) -> Optional[dict]:
        for doc in self._collection(collection).values():
            if _matches(doc, criteria):
                return copy.deepcopy(doc)
        return None

    def update(self, collection: str, doc_id: str, changes: dict) -> Optional[dict]:
        existing = self._collection(collection).get(check_id(doc_id))
        if existing is None:
            return None
        updated = {**existing, **copy.deepcopy(changes), "_id": doc_id}
        updated["updatedAt"] = time.time()
        self._check_unique(collection, updated)
        self._collection(collection)[doc_id] = updated
        return copy.deepcopy(updated)

    def delete(self, collection: str, doc_id: str) -> bool:
        return self._collection(collection).pop(check_id(doc_id), None) is not None

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.collections.clear()

    def close(self) -> None:
        pass


class SqlDocumentStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g.,
    Postgres, or SQLite for tests). Each document is one row holding its
    JSON body.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDocumentStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _rows(self, session: Session, collection: str) -> list["DocumentRow"]:
        stmt = (
            select(DocumentRow)
            .where(DocumentRow.collection == collection)
            .order_by(DocumentRow.created_at.asc())
        )
        return list(session.execute(stmt).scalars())

    def _unique_values(self, collection: str, document: dict) -> Dict[str, Any]:
        return {
            key: document[key]
            for key in UNIQUE_KEYS.get(collection, ())
            if document.get(key) is not None
        }

    def _claim_unique(self, session: Session, collection: str, document: dict) -> None:
        """Replace the document's rows in the unique index table."""
        session.execute(
            delete(UniqueKeyRow).where(
                UniqueKeyRow.collection == collection,
                UniqueKeyRow.document_id == document["_id"],
            )
        )
        values = self._unique_values(collection, document)
        if values:
            session.execute(
                insert(UniqueKeyRow),
                [
                    {
                        "collection": collection,
                        "key": key,
                        "value": str(value),
                        "document_id": document["_id"],
                    }
                    for key, value in values.items()
                ],
            )

    def insert(self, collection: str, document: dict) -> dict:
        doc = copy.deepcopy(document)
        doc.setdefault("_id", new_id())
        now = time.time()
        doc.setdefault("createdAt", now)
        doc["updatedAt"] = now
        with self.Session() as session:
            try:
                self._claim_unique(session, collection, doc)
                session.add(
                    DocumentRow(
                        id=doc["_id"],
                        collection=collection,
                        body=doc,
                        created_at=doc["createdAt"],
                        updated_at=now,
                    )
                )
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                conflict = self._unique_values(collection, doc) or {"_id": doc["_id"]}
                raise DuplicateKeyError(conflict) from exc
        return doc

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(DocumentRow, check_id(doc_id))
            if not row or row.collection != collection:
                return None
            return copy.deepcopy(row.body)

    def find(
        self, collection: str, *, sort: Optional[Sort] = None, **criteria: Any
    ) -> list[dict]:
        with self.Session() as session:
            docs = [
                copy.deepcopy(row.body)
                for row in self._rows(session, collection)
                if _matches(row.body, criteria)
            ]
        return _sorted(docs, sort)

    def find_one(self, collection: str, **criteria: Any) -> Optional[dict]:
        docs = self.find(collection, **criteria)
        return docs[0] if docs else None

    def update(self, collection: str, doc_id: str, changes: dict) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(DocumentRow, check_id(doc_id))
            if not row or row.collection != collection:
                return None
            now = time.time()
            updated = {**row.body, **copy.deepcopy(changes), "_id": doc_id}
            updated["updatedAt"] = now
            # Reassign so SQLAlchemy sees the JSON column change.
            row.body = updated
            row.updated_at = now
            try:
                self._claim_unique(session, collection, updated)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateKeyError(self._unique_values(collection, updated)) from exc
            return copy.deepcopy(updated)

    def delete(self, collection: str, doc_id: str) -> bool:
        with self.Session() as session:
            row = session.get(DocumentRow, check_id(doc_id))
            if not row or row.collection != collection:
                return False
            session.execute(
                delete(UniqueKeyRow).where(
                    UniqueKeyRow.collection == collection,
                    UniqueKeyRow.document_id == doc_id,
                )
            )
            session.delete(row)
            session.commit()
            return True

    def close(self) -> None:
        self.engine.dispose()


Base = declarative_base()


class DocumentRow(Base):
    __tablename__ = "documents"

    id = Column(String(32), primary_key=True)
    collection = Column(String, nullable=False, index=True)
    body = Column(JSON, nullable=False)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


class UniqueKeyRow(Base):
    """One row per unique field value; the primary key enforces uniqueness."""

    __tablename__ = "document_unique_keys"

    collection = Column(String, primary_key=True)
    key = Column(String, primary_key=True)
    value = Column(String, primary_key=True)
    document_id = Column(String(32), nullable=False, index=True)
