"""Running aggregation pipelines."""

from __future__ import annotations

from typing import Any

from pymongo.errors import PyMongoError

from .cursor import Cursor
from .errors import NoSuchDocumentsError


class Aggregate:
    """A pending aggregation on a collection."""

    def __init__(self, collection: Any, pipeline: Any, **options: Any) -> None:
        self._collection = collection
        self._pipeline = pipeline
        self._options = options

    def all(self) -> list[Any]:
        """Run the pipeline and return every resulting document."""
        cursor = self._collection.aggregate(self._pipeline, **self._options)
        try:
            return list(cursor)
        finally:
            cursor.close()

    def one(self) -> Any:
        """Run the pipeline and return its first resulting document."""
        raw = self._collection.aggregate(self._pipeline, **self._options)
        with Cursor(raw) as cursor:
            doc = cursor.next()
        if doc is None:
            raise NoSuchDocumentsError()
        return doc

    def iter(self) -> Cursor:
        """Run the pipeline and return a cursor over its results."""
        try:
            raw = self._collection.aggregate(self._pipeline)
        except (PyMongoError, TypeError, ValueError) as exc:
            return Cursor(error=exc)
        return Cursor(raw)