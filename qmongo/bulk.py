"""Batching write operations into a single bulk write."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pymongo.operations import (
    DeleteMany,
    DeleteOne,
    InsertOne,
    ReplaceOne,
    UpdateMany,
    UpdateOne,
)


@dataclass
class BulkResult:
    """Counts reported by a bulk write."""

    inserted_count: int = 0
    matched_count: int = 0
    modified_count: int = 0
    deleted_count: int = 0
    upserted_count: int = 0
    upserted_ids: dict[int, Any] = field(default_factory=dict)


class Bulk:
    """Operations queued for one bulk write; not safe for concurrent use.

    Operations in a bulk do not trigger field hooks. Writes are ordered
    unless ``set_ordered(False)`` is called.
    """

    def __init__(self, collection: Any) -> None:
        self._collection = collection
        self._queue: list[Any] = []
        self._ordered: bool | None = None

    def set_ordered(self, ordered: bool) -> Bulk:
        """Choose whether writes stop at the first failing one."""
        self._ordered = ordered
        return self

    def insert_one(self, doc: Any) -> Bulk:
        self._queue.append(InsertOne(doc))
        return self

    def remove(self, filter: Any) -> Bulk:
        self._queue.append(DeleteOne(filter))
        return self

    def remove_id(self, id: Any) -> Bulk:
        return self.remove({"_id": id})

    def remove_all(self, filter: Any) -> Bulk:
        self._queue.append(DeleteMany(filter))
        return self

    def upsert(self, filter: Any, replacement: Any) -> Bulk:
        """Queue a replace that inserts when nothing matches."""
        self._queue.append(ReplaceOne(filter, replacement, upsert=True))
        return self

    def upsert_id(self, id: Any, replacement: Any) -> Bulk:
        return self.upsert({"_id": id}, replacement)

    def update_one(self, filter: Any, update: Any) -> Bulk:
        self._queue.append(UpdateOne(filter, update))
        return self

    def update_id(self, id: Any, update: Any) -> Bulk:
        return self.update_one({"_id": id}, update)

    def update_all(self, filter: Any, update: Any) -> Bulk:
        self._queue.append(UpdateMany(filter, update))
        return self

    def run(self) -> BulkResult:
        """Execute the queued operations.

        On success the queue is emptied; on failure it is kept unchanged.
        """
        ordered = True if self._ordered is None else self._ordered
        result = self._collection.bulk_write(list(self._queue), ordered=ordered)
        self._queue = []
        return BulkResult(
            inserted_count=result.inserted_count,
            matched_count=result.matched_count,
            modified_count=result.modified_count,
            deleted_count=result.deleted_count,
            upserted_count=result.upserted_count,
            upserted_ids=dict(result.upserted_ids or {}),
        )