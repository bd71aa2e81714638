"""
Pytest configuration and shared fixtures for the jsondriven test suite.

This module provides:
- An in-memory collection double with pymongo-shaped sync and async faces
- Operation contexts wired to fresh collections and a session map
- Test document factories
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from jsondriven.operations import OperationContext


INITIAL_DOCUMENTS = [
    {"_id": 1, "status": "archived"},
    {"_id": 2, "status": "active"},
    {"_id": 3, "status": "archived"},
    {"_id": 4, "status": "active"},
    {"_id": 5, "status": "archived"},
]


def _matches(document, filter):
    return all(document.get(key) == value for key, value in (filter or {}).items())


class InMemoryCollection:
    """Synchronous collection double. Records every call it receives."""

    def __init__(self, documents=()):
        self.documents = [dict(d) for d in documents]
        self.calls = []

    def _record(self, method, args, kwargs):
        self.calls.append((method, args, kwargs))

    def delete_one(self, filter, **kwargs):
        self._record("delete_one", (filter,), kwargs)
        for index, document in enumerate(self.documents):
            if _matches(document, filter):
                del self.documents[index]
                return SimpleNamespace(deleted_count=1, acknowledged=True)
        return SimpleNamespace(deleted_count=0, acknowledged=True)

    def delete_many(self, filter, **kwargs):
        self._record("delete_many", (filter,), kwargs)
        kept = [d for d in self.documents if not _matches(d, filter)]
        deleted = len(self.documents) - len(kept)
        self.documents = kept
        return SimpleNamespace(deleted_count=deleted, acknowledged=True)

    def insert_one(self, document, **kwargs):
        self._record("insert_one", (document,), kwargs)
        self.documents.append(dict(document))
        return SimpleNamespace(inserted_id=document.get("_id"), acknowledged=True)

    def insert_many(self, documents, **kwargs):
        self._record("insert_many", (documents,), kwargs)
        self.documents.extend(dict(d) for d in documents)
        return SimpleNamespace(inserted_ids=[d.get("_id") for d in documents], acknowledged=True)

    def _update(self, method, filter, change, many, upsert, replace):
        matched = [d for d in self.documents if _matches(d, filter)]
        if not many:
            matched = matched[:1]
        modified = 0
        for document in matched:
            before = dict(document)
            if replace:
                document.clear()
                document.update({"_id": before.get("_id"), **change})
            else:
                document.update(change.get("$set", {}))
            if document != before:
                modified += 1
        upserted_id = None
        if not matched and upsert:
            new_document = dict(filter or {})
            new_document.update(change if replace else change.get("$set", {}))
            new_document.setdefault("_id", max([d["_id"] for d in self.documents], default=0) + 1)
            self.documents.append(new_document)
            upserted_id = new_document["_id"]
        return SimpleNamespace(
            matched_count=len(matched),
            modified_count=modified,
            upserted_id=upserted_id,
            acknowledged=True,
        )

    def update_one(self, filter, update, upsert=False, **kwargs):
        self._record("update_one", (filter, update), dict(kwargs, upsert=upsert))
        return self._update("update_one", filter, update, False, upsert, replace=False)

    def update_many(self, filter, update, upsert=False, **kwargs):
        self._record("update_many", (filter, update), dict(kwargs, upsert=upsert))
        return self._update("update_many", filter, update, True, upsert, replace=False)

    def replace_one(self, filter, replacement, upsert=False, **kwargs):
        self._record("replace_one", (filter, replacement), dict(kwargs, upsert=upsert))
        return self._update("replace_one", filter, replacement, False, upsert, replace=True)

    def count_documents(self, filter, **kwargs):
        self._record("count_documents", (filter,), kwargs)
        count = len([d for d in self.documents if _matches(d, filter)])
        count = max(count - kwargs.get("skip", 0), 0)
        if kwargs.get("limit"):
            count = min(count, kwargs["limit"])
        return count


class AsyncInMemoryCollection:
    """Asynchronous face of an InMemoryCollection: same methods, awaited."""

    def __init__(self, collection: InMemoryCollection):
        self.collection = collection

    def __getattr__(self, method):
        sync_method = getattr(self.collection, method)

        async def call(*args, **kwargs):
            await asyncio.sleep(0)
            return sync_method(*args, **kwargs)

        return call


@pytest.fixture
def sessions():
    return {
        "session0": MagicMock(name="session0"),
        "session1": MagicMock(name="session1"),
    }


@pytest.fixture
def collection():
    return InMemoryCollection(INITIAL_DOCUMENTS)


@pytest.fixture
def context(collection, sessions) -> OperationContext:
    return OperationContext(
        collection=collection,
        async_collection=AsyncInMemoryCollection(collection),
        database=MagicMock(name="database"),
        client=MagicMock(name="client"),
        sessions=sessions,
    )


@pytest.fixture
def make_context(sessions):
    """Return a helper building an independent context over fresh data."""
    def _factory(documents=INITIAL_DOCUMENTS):
        collection = InMemoryCollection(documents)
        return OperationContext(
            collection=collection,
            async_collection=AsyncInMemoryCollection(collection),
            sessions=sessions,
        )
    return _factory


@pytest.fixture
def delete_one_document():
    """Return a factory for deleteOne test documents."""
    def _factory(**overrides):
        document = {
            "name": "deleteOne",
            "arguments": {"filter": {"status": "archived"}},
            "result": {"deletedCount": 1},
        }
        document.update(overrides)
        return document
    return _factory
