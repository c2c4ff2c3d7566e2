"""Shared fixtures: an in-memory Firestore and an authenticated API client."""
import copy
import uuid

import pytest
from firebase_admin import firestore

import firebase_client


class FakeSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = copy.deepcopy(data)

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeDocumentRef:
    def __init__(self, db, path):
        self._db = db
        self.path = path
        self.id = path[-1]

    def get(self, transaction=None):
        return FakeSnapshot(self, self._db.docs.get(self.path))

    def set(self, data, merge=False):
        current = self._db.docs.get(self.path) if merge else None
        self._db.docs[self.path] = {**(current or {}), **copy.deepcopy(data)}

    def update(self, data):
        if self.path not in self._db.docs:
            raise KeyError(f"No document to update: {'/'.join(self.path)}")
        self._db.docs[self.path].update(copy.deepcopy(data))

    def delete(self):
        self._db.docs.pop(self.path, None)

    def collection(self, name):
        return FakeCollection(self._db, self.path + (name,))


class FakeQuery:
    def __init__(self, db, path, filters=(), orders=(), max_results=None):
        self._db = db
        self.path = path
        self._filters = filters
        self._orders = orders
        self._limit = max_results

    def where(self, filter=None):
        return FakeQuery(self._db, self.path, self._filters + (filter,), self._orders, self._limit)

    def order_by(self, field, direction="ASCENDING"):
        return FakeQuery(self._db, self.path, self._filters, self._orders + ((field, direction),), self._limit)

    def limit(self, count):
        return FakeQuery(self._db, self.path, self._filters, self._orders, count)

    def stream(self):
        snapshots = [
            FakeSnapshot(FakeDocumentRef(self._db, path), data)
            for path, data in self._db.docs.items()
            if path[:-1] == self.path
        ]
        for f in self._filters:
            assert f.op_string == "=="
            snapshots = [s for s in snapshots if s.to_dict().get(f.field_path) == f.value]
        for field, direction in reversed(self._orders):
            snapshots.sort(key=lambda s: s.to_dict().get(field) or "", reverse=direction == "DESCENDING")
        if self._limit is not None:
            snapshots = snapshots[:self._limit]
        return iter(snapshots)


class FakeCollection(FakeQuery):
    def document(self, doc_id=None):
        return FakeDocumentRef(self._db, self.path + (doc_id or uuid.uuid4().hex[:20],))

    def add(self, data):
        ref = self.document()
        ref.set(data)
        return None, ref


class FakeTransaction:
    def update(self, ref, data):
        ref.update(data)

    def set(self, ref, data, merge=False):
        ref.set(data, merge=merge)


class FakeFirestore:
    def __init__(self):
        self.docs = {}

    def collection(self, name):
        return FakeCollection(self, (name,))

    def transaction(self):
        return FakeTransaction()


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeFirestore()
    monkeypatch.setattr(firebase_client, "_db", db)
    monkeypatch.setattr(firestore, "transactional", lambda func: func)
    return db


@pytest.fixture
def client(fake_db):
    from fastapi.testclient import TestClient

    from main import app, get_token_claims

    app.dependency_overrides[get_token_claims] = lambda: {"uid": "farmer-1"}
    yield TestClient(app)
    app.dependency_overrides.clear()
