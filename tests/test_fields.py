from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId

from qmongo.fields import CustomFields, DefaultField, OpType, do, new_custom


def _now():
    return datetime.now().astimezone()


def _assert_recent_oid(oid):
    assert ObjectId.is_valid(oid)
    age = abs(datetime.now(timezone.utc) - ObjectId(oid).generation_time)
    assert age < timedelta(seconds=60)


@dataclass
class _Clock:
    start: datetime
    start_ts: int

    @classmethod
    def begin(cls):
        return cls(_now(), int(time.time()))

    def check(self, value):
        """Assert that a datetime or unix timestamp was taken since the clock began."""
        if isinstance(value, datetime):
            assert self.start <= value <= _now()
        else:
            assert self.start_ts <= value <= int(time.time())


def _custom_builder():
    return (
        new_custom()
        .set_create_at("create_time_at")
        .set_update_at("update_time_at")
        .set_id("my_id")
    )


@dataclass(kw_only=True)
class User(DefaultField):
    name: str = ""
    age: int = 0
    create_time_at: datetime | None = None
    update_time_at: int = 0
    my_id: ObjectId | None = None

    def custom_fields(self):
        return _custom_builder()


@dataclass(kw_only=True)
class UserField(DefaultField):
    name: str = ""
    age: int = 0
    create_time_at: int = 0
    update_time_at: datetime | None = None
    my_id: ObjectId | None = None

    def custom_fields(self):
        return _custom_builder()


@dataclass
class CustomUser:
    create: datetime | None = None
    update: int = 0
    my_id: ObjectId | None = None
    my_id_string: str = ""
    invalid_id: int = 0
    invalid_create: float = 0.0
    invalid_update: float = 0.0


def _apply_all(builder, doc):
    builder.custom_create_time(doc)
    builder.custom_update_time(doc)
    builder.custom_id(doc)


def _assert_filled(doc, clock):
    for stamp in (doc.create_at, doc.update_at, doc.create_time_at, doc.update_time_at):
        clock.check(stamp)
    _assert_recent_oid(doc.id)
    _assert_recent_oid(doc.my_id)


def _as_is(moment):
    return moment


def _as_ts(moment):
    return int(moment.timestamp())


# ---- default fields ----


def test_default_field():
    clock = _Clock.begin()
    df = DefaultField()
    df.default_create_at()
    df.default_update_at()
    df.default_id()
    clock.check(df.create_at)
    clock.check(df.update_at)
    _assert_recent_oid(df.id)


def test_default_field_keeps_existing_values():
    earlier = _now() - timedelta(seconds=3)
    oid = ObjectId()
    df = DefaultField(id=oid, create_at=earlier, update_at=earlier)
    df.default_create_at()
    df.default_id()
    df.default_update_at()
    assert df.create_at == earlier
    assert df.id == oid
    assert df.update_at > earlier


def test_default_id_replaces_nil_object_id():
    nil = ObjectId(b"\x00" * 12)
    df = DefaultField(id=nil)
    df.default_id()
    assert df.id != nil
    _assert_recent_oid(df.id)


# ---- custom fields ----


def test_builder_records_names():
    c = new_custom().set_update_at("u").set_create_at("c").set_id("i")
    assert c == CustomFields(create_at="c", update_at="u", id="i")


def test_custom_fields():
    clock = _Clock.begin()
    u = CustomUser()
    _apply_all(
        new_custom().set_update_at("create").set_create_at("update").set_id("my_id"), u
    )
    clock.check(u.update)
    clock.check(u.create)
    _assert_recent_oid(u.my_id)

    u1 = CustomUser()
    new_custom().set_id("my_id_string").custom_id(u1)
    assert len(u1.my_id_string) == 24
    assert ObjectId.is_valid(u1.my_id_string)


def test_custom_create_time_does_not_overwrite_and_update_does():
    old_ts = int(time.time()) - 100
    u = CustomUser(update=old_ts)
    new_custom().set_create_at("update").custom_create_time(u)
    assert u.update == old_ts

    new_custom().set_update_at("update").custom_update_time(u)
    assert u.update > old_ts


def test_custom_id_keeps_existing_values():
    oid = ObjectId()
    u = CustomUser(my_id=oid, my_id_string="abc")
    new_custom().set_id("my_id").custom_id(u)
    new_custom().set_id("my_id_string").custom_id(u)
    assert u.my_id == oid
    assert u.my_id_string == "abc"


@pytest.mark.parametrize(
    "builder",
    [
        new_custom(),
        new_custom().set_create_at("nope").set_update_at("nope").set_id("nope"),
        new_custom().set_create_at("invalid_create"),
        new_custom().set_update_at("invalid_update"),
        new_custom().set_id("invalid_id"),
    ],
)
def test_unusable_fields_change_nothing(builder):
    u = CustomUser()
    builder.custom_create_time(u)
    builder.custom_update_time(u)
    builder.custom_id(u)
    assert u.create is None
    assert u.update == 0
    assert u.my_id is None
    assert u.my_id_string == ""
    assert u.invalid_id == 0
    assert u.invalid_create == 0.0
    assert u.invalid_update == 0.0
    assert "nope" not in vars(u)


def test_unsupported_field_type_is_logged(caplog):
    u = CustomUser()
    with caplog.at_level(logging.WARNING, logger="qmongo.fields"):
        _apply_all(new_custom().set_create_at("invalid_create"), u)
    assert "invalid_create" in caplog.text
    assert u.invalid_create == 0.0


def test_custom_fields_on_mapping():
    doc = {"createdAt": None, "stamp": 0, "_id": ""}
    c = new_custom().set_create_at("createdAt").set_update_at("stamp").set_id("_id")
    clock = _Clock.begin()
    _apply_all(c, doc)
    clock.check(doc["createdAt"])
    clock.check(doc["stamp"])
    assert ObjectId.is_valid(doc["_id"])

    missing = {}
    c.custom_id(missing)
    assert missing == {}


# ---- do ----


@pytest.mark.parametrize("cls", [User, UserField])
@pytest.mark.parametrize("op", [OpType.BEFORE_INSERT, OpType.BEFORE_UPSERT])
def test_before_insert_and_upsert_fill_empty_fields(cls, op):
    clock = _Clock.begin()
    single = cls(name="Lucas", age=7)
    do(single, op)
    _assert_filled(single, clock)

    many = [cls(name="Lucas", age=7), cls(name="Alice", age=8)]
    do(many, op)
    for v in many:
        _assert_filled(v, clock)
    assert many[0].id != many[1].id


@pytest.mark.parametrize(
    "cls, create_conv, update_conv",
    [(User, _as_is, _as_ts), (UserField, _as_ts, _as_is)],
)
@pytest.mark.parametrize("op", [OpType.BEFORE_INSERT, OpType.BEFORE_UPSERT])
def test_before_insert_and_upsert_keep_valid_values(cls, create_conv, update_conv, op):
    earlier = _now() - timedelta(seconds=3)
    oid = ObjectId()
    u = cls(
        name="Lucas",
        age=7,
        create_at=earlier,
        update_at=earlier,
        id=oid,
        my_id=oid,
        create_time_at=create_conv(earlier),
        update_time_at=update_conv(earlier),
    )
    do(u, op)
    assert (u.create_at, u.id, u.my_id) == (earlier, oid, oid)
    assert u.create_time_at == create_conv(earlier)
    assert u.update_at != earlier
    assert u.update_time_at != update_conv(earlier)


@pytest.mark.parametrize("op", [OpType.BEFORE_UPDATE, OpType.BEFORE_REPLACE])
def test_before_update_touches_update_fields_only(op):
    start = _now()
    start_ts = int(time.time())
    single = User(name="Lucas", age=7)
    listed = [User(name="Lucas", age=7), User(name="Alice", age=8)]
    tupled = (User(name="Lucas", age=7), User(name="Alice", age=8))
    do(single, op)
    do(listed, op)
    do(tupled, op)
    for v in (single, *listed, *tupled):
        assert start <= v.update_at <= _now()
        assert start_ts <= v.update_time_at <= int(time.time())
        assert v.id is None
        assert v.create_at is None
        assert v.my_id is None
        assert v.create_time_at is None


@pytest.mark.parametrize(
    "op",
    [
        OpType.AFTER_INSERT,
        OpType.AFTER_UPDATE,
        OpType.AFTER_UPSERT,
        OpType.AFTER_REPLACE,
        OpType.BEFORE_REMOVE,
        OpType.AFTER_REMOVE,
    ],
)
def test_after_operations_change_nothing(op):
    u = User(name="Lucas")
    do(u, op)
    assert u == User(name="Lucas")


def test_nil_documents_are_skipped():
    assert do(None, OpType.BEFORE_UPSERT) is None
    u = User(name="Lucas")
    do([None, u], OpType.BEFORE_INSERT)
    _assert_recent_oid(u.id)


def test_plain_objects_are_left_alone():
    doc = {"name": "Lucas"}
    do(doc, OpType.BEFORE_INSERT)
    assert doc == {"name": "Lucas"}


def test_op_type_values():
    assert OpType("beforeInsert") is OpType.BEFORE_INSERT
    assert OpType.AFTER_REMOVE.value == "afterRemove"