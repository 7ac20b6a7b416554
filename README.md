# qmongo

`qmongo` wraps pymongo databases and collections in a small, chainable API.
Before documents are inserted, upserted or replaced it can fill in their id,
creation time and update time fields.

## Installation

```
pip install qmongo
```

To run the test suite:

```
pip install "qmongo[test]"
pytest
```

## Databases and collections

You open the connection yourself with pymongo and hand the driver database
to `qmongo.database.Database`:

```python
from pymongo import MongoClient
from qmongo.database import Database

client = MongoClient("mongodb://localhost:27017")
db = Database(client["qmgotest"])
users = db.collection("users")

print(db.get_database_name(), users.get_collection_name())
db.run_command({"ping": 1})
```

`Database.drop_database()` drops the database; `Collection.drop_collection()`
drops the collection. `Collection.clone_collection()` returns a copy of the
underlying pymongo collection.

## Writing documents

Keyword arguments of every write are passed on to pymongo.

```python
result = users.insert_one({"name": "Alice", "age": 10})
print(result.inserted_id)

many = users.insert_many([{"name": "Lucas", "age": 11}, {"name": "Joe", "age": 22}])
print(many.inserted_ids)

users.update_one({"name": "Alice"}, {"$set": {"age": 18}})
users.update_id(result.inserted_id, {"$set": {"age": 19}})
changed = users.update_all({"age": 22}, {"$set": {"age": 23}})
print(changed.matched_count, changed.modified_count)

upserted = users.upsert({"name": "Lily"}, {"name": "Lily", "age": 20})
print(upserted.upserted_count, upserted.upserted_id)

users.replace_one({"name": "Lily"}, {"name": "Lily", "age": 21})
users.remove({"name": "Joe"})
deleted = users.remove_all({"age": {"$gt": 100}})
print(deleted.deleted_count)
```

- `insert_many` raises `qmongo.errors.NotValidSliceToInsertError` unless it
  is given a non-empty list or tuple.
- `update_one`, `update_id`, `replace_one`, `remove` and `remove_id` raise
  `qmongo.errors.NoSuchDocumentsError` when nothing matched. `update_all`
  and `remove_all` report a count of zero instead.
- `qmongo.errors.is_dup(err)` tells whether an error is a duplicate-key
  (E11000) error; `is_err_no_documents(err)` tells whether it is a
  `NoSuchDocumentsError`. All of the package's own errors derive from
  `qmongo.errors.QmgoError`.

Dataclass instances are turned into mappings before they are written.

## Indexes

```python
from qmongo.collection import IndexModel

users.create_one_index(IndexModel(key=["name"], unique=True))
users.create_indexes([IndexModel(key=["age", "-name"], expire_after_seconds=3600)])
users.ensure_indexes(["uid"], ["name,-age"])
users.drop_index(["age", "-name"])
users.drop_all_indexes()
```

A leading `-` on a key name makes that key descending. In `ensure_indexes`,
the first list gives unique indexes and the second plain ones; a comma
joins the fields of one compound index. `drop_index` drops the index made
of exactly the given fields.

## Aggregation and cursors

```python
pipeline = [
    {"$match": {"age": {"$gt": 11}}},
    {"$group": {"_id": "$name", "total": {"$sum": "$age"}}},
]
rows = users.aggregate(pipeline).all()
first = users.aggregate(pipeline).one()   # NoSuchDocumentsError if empty

with users.aggregate(pipeline).iter() as cursor:
    for row in cursor:
        print(row)
    print(cursor.err())
```

`qmongo.cursor.Cursor.next()` returns the next document, or `None` once the
cursor is exhausted or has failed; `err()` returns the error, if any.
`all()` returns the remaining documents and closes the cursor.

## Bulk writes

```python
result = (
    users.bulk()
    .insert_one({"name": "Jess", "age": 22})
    .update_one({"name": "Jess"}, {"$set": {"age": 23}})
    .update_all({"age": 23}, {"$set": {"age": 18}})
    .upsert({"age": 17}, {"name": "Joe", "age": 17})
    .remove_all({"age": 18})
    .set_ordered(False)
    .run()
)
print(result.inserted_count, result.modified_count, result.deleted_count)
print(result.upserted_count, result.upserted_ids)
```

Writes are ordered unless `set_ordered(False)` is called. A successful
`run()` empties the queue; a failing one leaves it as it was. Operations in
a bulk do not fill in document fields.

## Automatic fields

`insert_one`, `insert_many` and `upsert` fill in an unset id, an unset
creation time and the update time of a document; `replace_one` sets only
the update time. `update_one`, `update_id` and `update_all` do not touch
fields.

Subclass the dataclass `qmongo.fields.DefaultField` to get `id`,
`create_at` and `update_at`, written as `_id`, `createAt` and `updateAt`:

```python
from dataclasses import dataclass
from qmongo.fields import DefaultField

@dataclass(kw_only=True)
class User(DefaultField):
    name: str = ""
    age: int = 0

users.insert_one(User(name="Alice", age=10))
```

To use your own attribute or key names, give the document a
`custom_fields()` method that returns a builder from
`qmongo.fields.new_custom()`:

```python
from qmongo.fields import new_custom

class Event:
    def __init__(self):
        self.created = None
        self.changed = 0
        self.event_id = ""

    def custom_fields(self):
        return new_custom().set_create_at("created").set_update_at("changed").set_id("event_id")
```

A time field that holds `None` or a `datetime` receives the current local
time; one that holds an `int` receives Unix seconds, with `0` counting as
unset. An id field that holds `None` or an `ObjectId` receives a new
`ObjectId`; one that holds a string receives its hex form when empty.
Fields the document does not have are left alone. `qmongo.fields.do(doc,
op_type)` applies these rules directly for a given `OpType`, to one
document or a list of them.

## What is not included

`qmongo` does not open connections or read configuration: create the
pymongo client yourself. `Collection` has no find or query builder, and
there is no support for sessions or transactions; use the underlying
pymongo collection for those.