"""Document stores for per-owner JSON state.

Two backends share one small interface:

- ``MappingDocumentStore`` wraps any mutable mapping. The UI hands it
  NiceGUI's per-browser ``app.storage.user``, which plays the role of
  browser local storage.
- ``SqlDocumentStore`` keeps documents in a SQL table and serves signed-in
  users, keyed by their identity provider user id.

``LazyDocumentStore`` defers opening a backend until a request actually
reads or writes, so anonymous API calls never touch the database.
"""

import copy
import logging
from collections.abc import Callable, MutableMapping
from typing import Any, Protocol

from sqlalchemy.orm import sessionmaker

from parseai.storage.database import DocumentRow, create_session_factory

logger = logging.getLogger(__name__)

Mutator = Callable[[dict[str, Any] | None], dict[str, Any]]


class DocumentStore(Protocol):
    """Keyed JSON documents grouped into collections."""

    def get(self, collection: str, key: str) -> dict[str, Any] | None: ...

    def set(self, collection: str, key: str, data: dict[str, Any]) -> None: ...

    def delete(self, collection: str, key: str) -> None: ...

    def update(self, collection: str, key: str, mutate: Mutator) -> dict[str, Any]:
        """Replace a document with ``mutate(current)`` and return the new value."""
        ...


class MappingDocumentStore:
    """Document store over a mutable mapping (browser storage or a dict)."""

    def __init__(self, mapping: MutableMapping[str, Any]) -> None:
        self._mapping = mapping

    @staticmethod
    def _slot(collection: str, key: str) -> str:
        return f"{collection}/{key}"

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        data = self._mapping.get(self._slot(collection, key))
        return copy.deepcopy(data) if data is not None else None

    def set(self, collection: str, key: str, data: dict[str, Any]) -> None:
        self._mapping[self._slot(collection, key)] = copy.deepcopy(data)

    def delete(self, collection: str, key: str) -> None:
        self._mapping.pop(self._slot(collection, key), None)

    def update(self, collection: str, key: str, mutate: Mutator) -> dict[str, Any]:
        data = mutate(self.get(collection, key))
        self.set(collection, key, data)
        return data


class SqlDocumentStore:
    """Document store over the ``documents`` table."""

    def __init__(self, session_factory: sessionmaker | None = None) -> None:
        self._session_factory = session_factory or create_session_factory()

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        with self._session_factory() as db:
            row = db.get(DocumentRow, (collection, key))
            return copy.deepcopy(row.data) if row is not None else None

    def set(self, collection: str, key: str, data: dict[str, Any]) -> None:
        with self._session_factory() as db:
            row = db.get(DocumentRow, (collection, key))
            if row is None:
                db.add(DocumentRow(collection=collection, key=key, data=data))
            else:
                row.data = data
            db.commit()

    def delete(self, collection: str, key: str) -> None:
        with self._session_factory() as db:
            row = db.get(DocumentRow, (collection, key))
            if row is not None:
                db.delete(row)
                db.commit()

    def update(self, collection: str, key: str, mutate: Mutator) -> dict[str, Any]:
        with self._session_factory() as db, db.begin():
            row = db.get(DocumentRow, (collection, key), with_for_update=True)
            current = copy.deepcopy(row.data) if row is not None else None
            data = mutate(current)
            if row is None:
                db.add(DocumentRow(collection=collection, key=key, data=data))
            else:
                # New object so the JSON column registers the change
                row.data = data
        logger.debug(f"Updated document {collection}/{key}")
        return data


class LazyDocumentStore:
    """Document store that opens its backend on first read or write."""

    def __init__(self, factory: Callable[[], DocumentStore]) -> None:
        self._factory = factory
        self._store: DocumentStore | None = None

    @property
    def store(self) -> DocumentStore:
        if self._store is None:
            self._store = self._factory()
        return self._store

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        return self.store.get(collection, key)

    def set(self, collection: str, key: str, data: dict[str, Any]) -> None:
        self.store.set(collection, key, data)

    def delete(self, collection: str, key: str) -> None:
        self.store.delete(collection, key)

    def update(self, collection: str, key: str, mutate: Mutator) -> dict[str, Any]:
        return self.store.update(collection, key, mutate)


# Module-level singleton instance
_remote_store: SqlDocumentStore | None = None


def get_remote_store() -> SqlDocumentStore:
    """Get or create the global SQL document store.

    Returns:
        The SqlDocumentStore instance.
    """
    global _remote_store
    if _remote_store is None:
        _remote_store = SqlDocumentStore()
    return _remote_store
