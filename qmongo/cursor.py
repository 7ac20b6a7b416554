"""A thin, error-carrying wrapper around a driver cursor."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from pymongo.errors import PyMongoError


class Cursor:
    """Iterates the documents of a query or aggregation.

    A cursor may be created with the error that prevented the underlying
    driver cursor from being opened. Such a cursor yields nothing, and
    ``all`` and ``close`` raise that error.
    """

    def __init__(self, cursor: Any = None, error: BaseException | None = None) -> None:
        self._cursor = cursor
        self._error = error
        self._failure: BaseException | None = None

    def __iter__(self) -> Iterator[Any]:
        while (doc := self.next()) is not None:
            yield doc

    def __enter__(self) -> Cursor:
        return self

    def __exit__(self, *args: Any) -> None:
        if self._error is None and self._cursor is not None:
            self._cursor.close()

    def next(self) -> Any:
        """Return the next document, or None when exhausted or failed."""
        if self._error is not None or self._cursor is None:
            return None
        try:
            return next(self._cursor)
        except StopIteration:
            return None
        except PyMongoError as exc:
            self._failure = exc
            return None

    def all(self) -> list[Any]:
        """Return every remaining document and close the cursor."""
        if self._error is not None:
            raise self._error
        try:
            return list(self._cursor)
        finally:
            self._cursor.close()

    def close(self) -> None:
        """Release the cursor; it must not be used afterwards."""
        if self._error is not None:
            raise self._error
        self._cursor.close()

    def err(self) -> BaseException | None:
        """Return the last error of the cursor, or None if there was none."""
        if self._error is not None:
            return self._error
        return self._failure