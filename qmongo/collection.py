"""Write, index and aggregate operations on one MongoDB collection."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pymongo import IndexModel as _DriverIndexModel

from .aggregate import Aggregate
from .bulk import Bulk
from .errors import NoSuchDocumentsError, NotValidSliceToInsertError
from .fields import DefaultField, OpType, do

logger = logging.getLogger(__name__)

_DEFAULT_FIELD_NAMES = {"id": "_id", "create_at": "createAt", "update_at": "updateAt"}


@dataclass
class IndexModel:
    """An index to create: key fields, a leading '-' meaning descending."""

    key: list[str] = field(default_factory=list)
    unique: bool = False
    background: bool = False
    sparse: bool = False
    expire_after_seconds: int | None = None


@dataclass(frozen=True)
class InsertOneResult:
    inserted_id: Any


@dataclass(frozen=True)
class InsertManyResult:
    inserted_ids: list[Any]


@dataclass(frozen=True)
class UpdateResult:
    matched_count: int
    modified_count: int
    upserted_count: int
    upserted_id: Any


@dataclass(frozen=True)
class DeleteResult:
    deleted_count: int


def _split_sort_field(name: str) -> tuple[str, int]:
    """Split a field such as '-age' into its key and sort direction."""
    if name.startswith("-"):
        return name[1:], -1
    if name.startswith("+"):
        return name[1:], 1
    return name, 1


def _dropped_index_name(index: Iterable[str]) -> str:
    """Name under which the server stores an index, e.g. 'a_1_b_-1'."""
    parts = []
    for name in index:
        key, direction = _split_sort_field(name)
        parts.append(f"{key}_{direction}")
    return "_".join(parts)


def _to_document(doc: Any) -> Any:
    """Turn a dataclass instance into a mapping the driver can encode."""
    if isinstance(doc, Mapping) or not dataclasses.is_dataclass(doc) or isinstance(doc, type):
        return doc
    is_default = isinstance(doc, DefaultField)
    result = {}
    for f in dataclasses.fields(doc):
        name = f.metadata.get("bson")
        if name is None:
            name = _DEFAULT_FIELD_NAMES.get(f.name, f.name) if is_default else f.name
        result[name] = getattr(doc, f.name)
    return result


def _translate_update_result(res: Any) -> UpdateResult:
    raw = res.raw_result or {}
    return UpdateResult(
        matched_count=res.matched_count,
        modified_count=res.modified_count,
        upserted_count=1 if "upserted" in raw else 0,
        upserted_id=res.upserted_id,
    )


class Collection:
    """A handle to a MongoDB collection.

    Keyword arguments of the operations are handed to the driver.
    """

    def __init__(self, collection: Any) -> None:
        self._collection = collection

    def insert_one(self, doc: Any, **kwargs: Any) -> InsertOneResult:
        """Insert one document, filling its default and custom fields first."""
        do(doc, OpType.BEFORE_INSERT)
        res = self._collection.insert_one(_to_document(doc), **kwargs)
        return InsertOneResult(inserted_id=res.inserted_id)

    def insert_many(self, docs: Any, **kwargs: Any) -> InsertManyResult:
        """Insert a non-empty list or tuple of documents."""
        do(docs, OpType.BEFORE_INSERT)
        if not isinstance(docs, (list, tuple)) or not docs:
            raise NotValidSliceToInsertError()
        res = self._collection.insert_many([_to_document(d) for d in docs], **kwargs)
        return InsertManyResult(inserted_ids=list(res.inserted_ids))

    def upsert(self, filter: Any, replacement: Any, **kwargs: Any) -> UpdateResult:
        """Replace the matching document, or insert one when none matches."""
        do(replacement, OpType.BEFORE_UPSERT)
        options = {**kwargs, "upsert": True}
        res = self._collection.replace_one(filter, _to_document(replacement), **options)
        return _translate_update_result(res)

    def upsert_id(self, id: Any, replacement: Any, **kwargs: Any) -> UpdateResult:
        """Upsert by ``_id``; an inserted document receives ``id``."""
        return self.upsert({"_id": id}, replacement, **kwargs)

    def update_one(self, filter: Any, update: Any, **kwargs: Any) -> None:
        """Update one document; raise NoSuchDocumentsError if none matched."""
        res = self._collection.update_one(filter, update, **kwargs)
        if res.matched_count == 0:
            raise NoSuchDocumentsError()

    def update_id(self, id: Any, update: Any, **kwargs: Any) -> None:
        self.update_one({"_id": id}, update, **kwargs)

    def update_all(self, filter: Any, update: Any, **kwargs: Any) -> UpdateResult:
        """Update every matching document; no match is not an error."""
        res = self._collection.update_many(filter, update, **kwargs)
        return _translate_update_result(res)

    def replace_one(self, filter: Any, doc: Any, **kwargs: Any) -> None:
        """Replace one document; raise NoSuchDocumentsError if none matched."""
        do(doc, OpType.BEFORE_REPLACE)
        res = self._collection.replace_one(filter, _to_document(doc), **kwargs)
        if res.matched_count == 0:
            raise NoSuchDocumentsError()

    def remove(self, filter: Any, **kwargs: Any) -> None:
        """Delete one document; raise NoSuchDocumentsError if none matched."""
        res = self._collection.delete_one(filter, **kwargs)
        if res.deleted_count == 0:
            raise NoSuchDocumentsError()

    def remove_id(self, id: Any, **kwargs: Any) -> None:
        self.remove({"_id": id}, **kwargs)

    def remove_all(self, filter: Any, **kwargs: Any) -> DeleteResult:
        """Delete every matching document."""
        res = self._collection.delete_many(filter, **kwargs)
        return DeleteResult(deleted_count=res.deleted_count)

    def aggregate(self, pipeline: Any, **kwargs: Any) -> Aggregate:
        return Aggregate(self._collection, pipeline, **kwargs)

    def bulk(self) -> Bulk:
        """Start a batch of operations to send in one bulk write."""
        return Bulk(self._collection)

    def _ensure_index(self, indexes: Iterable[IndexModel] | None) -> None:
        models = []
        for idx in indexes or ():
            options: dict[str, Any] = {
                "unique": idx.unique,
                "background": idx.background,
                "sparse": idx.sparse,
            }
            if idx.expire_after_seconds is not None:
                options["expireAfterSeconds"] = idx.expire_after_seconds
            keys = [_split_sort_field(name) for name in idx.key]
            models.append(_DriverIndexModel(keys, **options))
        if not models:
            return
        try:
            self._collection.create_indexes(models)
        except Exception as exc:
            logger.error(
                "collection %s: creating indexes %r failed: %s",
                self.get_collection_name(),
                indexes,
                exc,
            )
            raise

    def ensure_indexes(self, uniques: Iterable[str] | None, indexes: Iterable[str] | None) -> None:
        """Create unique and plain indexes; 'a,-b' names a compound index."""
        self.create_indexes(
            [IndexModel(key=spec.split(","), unique=True) for spec in uniques or ()]
        )
        self.create_indexes([IndexModel(key=spec.split(",")) for spec in indexes or ()])

    def create_indexes(self, indexes: Iterable[IndexModel]) -> None:
        self._ensure_index(indexes)

    def create_one_index(self, index: IndexModel) -> None:
        self._ensure_index([index])

    def drop_all_indexes(self) -> None:
        """Drop every index except the one on ``_id``."""
        self._collection.drop_indexes()

    def drop_index(self, indexes: Iterable[str]) -> None:
        """Drop the index made of exactly these fields."""
        self._collection.drop_index(_dropped_index_name(indexes))

    def drop_collection(self) -> None:
        self._collection.drop()

    def clone_collection(self) -> Any:
        """Return a copy of the underlying driver collection."""
        return self._collection.with_options()

    def get_collection_name(self) -> str:
        return self._collection.name