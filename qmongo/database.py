"""A handle to a MongoDB database."""

from __future__ import annotations

from typing import Any

from .collection import Collection


class Database:
    """Wraps a driver database and hands out collections."""

    def __init__(self, database: Any) -> None:
        self._database = database

    def collection(self, name: str) -> Collection:
        return Collection(self._database.get_collection(name))

    def get_database_name(self) -> str:
        return self._database.name

    def drop_database(self) -> None:
        self._database.client.drop_database(self._database.name)

    def run_command(self, command: Any, **kwargs: Any) -> Any:
        """Run a command document (an ordered mapping) against the database."""
        return self._database.command(command, **kwargs)