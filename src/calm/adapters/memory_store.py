"""In-memory document store adapter."""

import copy
import threading
import uuid
from contextlib import contextmanager

from calm.ports.document_store import SCHEMA, Order


def _sort_key(doc: dict, fields: tuple[str, ...]) -> tuple:
    # None sorts before any value, like an unscheduled due date
    return tuple((doc.get(f) is not None, doc.get(f) if doc.get(f) is not None else 0) for f in fields)


def _collections(data: dict) -> dict[str, dict[str, dict]]:
    collections: dict[str, dict[str, dict]] = {name: {} for name in SCHEMA}
    for collection, docs in data.items():
        collections.setdefault(collection, {}).update(docs)
    return collections


class MemoryDocumentStore:
    """
    Dict-backed document store.

    Implements DocumentStore protocol. Every call holds one lock, so each
    mutation is atomic; concurrent edits to one document still last-write-win.

    Mutations are staged on a new snapshot and swapped in only after
    ``_persist`` succeeds, so a failed save leaves the store unchanged.
    """

    def __init__(self, data: dict[str, dict[str, dict]] | None = None):
        self._lock = threading.RLock()
        self._data = _collections(copy.deepcopy(data or {}))

    @contextmanager
    def _session(self, write: bool = False):
        """Hold the store for one call; persistent subclasses reload here."""
        with self._lock:
            yield

    def _persist(self, data: dict[str, dict[str, dict]]) -> None:
        """Hook for persistent subclasses; called inside the session before a swap."""

    def _collection(self, collection: str) -> dict[str, dict]:
        if collection not in SCHEMA:
            raise ValueError(f"Unknown collection: {collection}")
        return self._data[collection]

    def _commit(self, collection: str, doc_id: str, doc: dict) -> None:
        # Stored docs are never mutated in place, so snapshots can share them
        data = {**self._data, collection: {**self._data[collection], doc_id: doc}}
        self._persist(data)
        self._data = data

    def get(self, collection: str, doc_id: str) -> dict | None:
        with self._session():
            doc = self._collection(collection).get(doc_id)
            if doc is None:
                return None
            return {"_id": doc_id, **copy.deepcopy(doc)}

    def insert(self, collection: str, doc: dict) -> str:
        with self._session(write=True):
            self._collection(collection)
            doc_id = uuid.uuid4().hex
            self._commit(collection, doc_id, {k: copy.deepcopy(v) for k, v in doc.items() if k != "_id"})
            return doc_id

    def patch(self, collection: str, doc_id: str, fields: dict) -> None:
        with self._session(write=True):
            current = self._collection(collection).get(doc_id)
            if current is None:
                raise KeyError(f"{collection}/{doc_id}")
            updates = {k: copy.deepcopy(v) for k, v in fields.items() if k != "_id"}
            self._commit(collection, doc_id, {**current, **updates})

    def query(
        self,
        collection: str,
        index: str,
        eq: dict | None = None,
        order: Order = "asc",
    ) -> list[dict]:
        fields = SCHEMA.get(collection, {}).get(index)
        if fields is None:
            raise ValueError(f"Unknown index {index!r} on {collection!r}")
        eq = eq or {}
        unknown = set(eq) - set(fields)
        if unknown:
            raise ValueError(f"Fields {sorted(unknown)} are not part of index {index!r}")

        with self._session():
            matches = [
                {"_id": doc_id, **copy.deepcopy(doc)}
                for doc_id, doc in self._collection(collection).items()
                if all(doc.get(k) == v for k, v in eq.items())
            ]
        return sorted(matches, key=lambda d: _sort_key(d, fields), reverse=order == "desc")

    def dump(self) -> dict[str, dict[str, dict]]:
        """Deep copy of every collection, keyed by id."""
        with self._session():
            return copy.deepcopy(self._data)
