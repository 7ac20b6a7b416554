"""Automatic maintenance of id and timestamp fields on documents."""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from bson import ObjectId

logger = logging.getLogger(__name__)

_MISSING = object()
_NIL_OBJECT_ID = ObjectId(b"\x00" * 12)


class OpType(str, enum.Enum):
    """Points in an operation's life at which documents may be touched."""

    BEFORE_INSERT = "beforeInsert"
    AFTER_INSERT = "afterInsert"
    BEFORE_UPDATE = "beforeUpdate"
    AFTER_UPDATE = "afterUpdate"
    BEFORE_REPLACE = "beforeReplace"
    AFTER_REPLACE = "afterReplace"
    BEFORE_UPSERT = "beforeUpsert"
    AFTER_UPSERT = "afterUpsert"
    BEFORE_REMOVE = "beforeRemove"
    AFTER_REMOVE = "afterRemove"


def _now() -> datetime:
    return datetime.now().astimezone()


def _get(doc: Any, name: str) -> Any:
    if isinstance(doc, MutableMapping):
        return doc.get(name, _MISSING)
    return getattr(doc, name, _MISSING)


def _set(doc: Any, name: str, value: Any) -> None:
    if isinstance(doc, MutableMapping):
        doc[name] = value
    else:
        setattr(doc, name, value)


def _set_time(doc: Any, name: str, overwrite: bool) -> None:
    """Fill a time field; an already set value is replaced only on overwrite."""
    value = _get(doc, name)
    if value is _MISSING:
        return
    if value is None or isinstance(value, datetime):
        if value is None or overwrite:
            _set(doc, name, _now())
    elif isinstance(value, int) and not isinstance(value, bool):
        if value == 0 or overwrite:
            _set(doc, name, int(time.time()))
    else:
        logger.warning(
            "unsupported type to set time on field %r: %s", name, type(value).__name__
        )


def _set_id(doc: Any, name: str) -> None:
    """Fill an id field that is still unset."""
    value = _get(doc, name)
    if value is _MISSING:
        return
    if value is None or isinstance(value, ObjectId):
        if value is None or value == _NIL_OBJECT_ID:
            _set(doc, name, ObjectId())
    elif isinstance(value, str):
        if value == "":
            _set(doc, name, str(ObjectId()))
    else:
        logger.warning(
            "unsupported type to set id on field %r: %s", name, type(value).__name__
        )


@dataclass
class CustomFields:
    """Names of a document's own id and timestamp fields."""

    create_at: str = ""
    update_at: str = ""
    id: str = ""

    def set_update_at(self, field_name: str) -> CustomFields:
        self.update_at = field_name
        return self

    def set_create_at(self, field_name: str) -> CustomFields:
        self.create_at = field_name
        return self

    def set_id(self, field_name: str) -> CustomFields:
        self.id = field_name
        return self

    def custom_create_time(self, doc: Any) -> None:
        """Set the creation time field unless it already holds a value."""
        if self.create_at:
            _set_time(doc, self.create_at, overwrite=False)

    def custom_update_time(self, doc: Any) -> None:
        """Set the update time field to now."""
        if self.update_at:
            _set_time(doc, self.update_at, overwrite=True)

    def custom_id(self, doc: Any) -> None:
        """Set the id field unless it already holds a value."""
        if self.id:
            _set_id(doc, self.id)


def new_custom() -> CustomFields:
    """Start a builder for a document's custom field names."""
    return CustomFields()


@dataclass(kw_only=True)
class DefaultField:
    """Id, creation and update time kept up to date on write operations."""

    id: ObjectId | None = None
    create_at: datetime | None = None
    update_at: datetime | None = None

    def default_update_at(self) -> None:
        self.update_at = _now()

    def default_create_at(self) -> None:
        if self.create_at is None:
            self.create_at = _now()

    def default_id(self) -> None:
        if self.id is None or self.id == _NIL_OBJECT_ID:
            self.id = ObjectId()


@runtime_checkable
class _DefaultFieldHook(Protocol):
    def default_update_at(self) -> None: ...

    def default_create_at(self) -> None: ...

    def default_id(self) -> None: ...


@runtime_checkable
class _CustomFieldsHook(Protocol):
    def custom_fields(self) -> CustomFields: ...


def _fill_all(doc: Any) -> None:
    if isinstance(doc, _DefaultFieldHook):
        doc.default_id()
        doc.default_create_at()
        doc.default_update_at()
    if isinstance(doc, _CustomFieldsHook):
        fields = doc.custom_fields()
        fields.custom_id(doc)
        fields.custom_create_time(doc)
        fields.custom_update_time(doc)


def _touch_update(doc: Any) -> None:
    if isinstance(doc, _DefaultFieldHook):
        doc.default_update_at()
    if isinstance(doc, _CustomFieldsHook):
        doc.custom_fields().custom_update_time(doc)


_HANDLERS: dict[OpType, Callable[[Any], None]] = {
    OpType.BEFORE_INSERT: _fill_all,
    OpType.BEFORE_UPDATE: _touch_update,
    OpType.BEFORE_REPLACE: _touch_update,
    OpType.BEFORE_UPSERT: _fill_all,
}


def do(doc: Any, op_type: OpType) -> None:
    """Update the default and custom fields of ``doc`` for ``op_type``.

    ``doc`` may be one document or a list or tuple of documents.
    """
    handler = _HANDLERS.get(op_type)
    if handler is None or doc is None:
        return
    docs = doc if isinstance(doc, (list, tuple)) else (doc,)
    for item in docs:
        handler(item)