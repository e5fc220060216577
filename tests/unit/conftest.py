"""Shared pytest configuration for unit tests."""
import copy
import itertools
import os
import sys
from unittest.mock import Mock

import pytest

# Ensure repo root is on sys.path
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from firebase_admin import firestore

from manage_easy.app import create_app
from manage_easy.config.settings import Settings
from manage_easy.middleware import auth_middleware

OWNER = "user-1"
AUTH_HEADERS = {"Authorization": "Bearer good-token"}


class FakeSnapshot:
    def __init__(self, doc_id, data, reference):
        self.id = doc_id
        self._data = data
        self.reference = reference

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


def _apply_update(current, updates):
    for key, value in updates.items():
        kind = type(value).__name__
        if kind == "ArrayUnion":
            existing = list(current.get(key) or [])
            existing.extend(v for v in value.values if v not in existing)
            current[key] = existing
        elif kind == "ArrayRemove":
            current[key] = [v for v in (current.get(key) or []) if v not in value.values]
        else:
            current[key] = copy.deepcopy(value)


class FakeDocument:
    def __init__(self, db, path, doc_id):
        self._db = db
        self._path = path
        self.id = doc_id

    @property
    def _docs(self):
        return self._db.docs.setdefault(self._path, {})

    def get(self):
        return FakeSnapshot(self.id, self._docs.get(self.id), self)

    def set(self, data, merge=False):
        if merge and self.id in self._docs:
            _apply_update(self._docs[self.id], data)
        else:
            self._docs[self.id] = {}
            _apply_update(self._docs[self.id], data)
        self._db.writes.append(("set", self._path + (self.id,), data))

    def update(self, data):
        if self.id not in self._docs:
            raise KeyError(f"No document to update: {self.id}")
        _apply_update(self._docs[self.id], data)
        self._db.writes.append(("update", self._path + (self.id,), data))

    def delete(self):
        self._docs.pop(self.id, None)
        self._db.writes.append(("delete", self._path + (self.id,), None))

    def collection(self, name):
        return FakeCollection(self._db, self._path + (self.id, name))


class FakeQuery:
    def __init__(self, collection, filters=(), orders=(), limit_to=None):
        self._collection = collection
        self._filters = tuple(filters)
        self._orders = tuple(orders)
        self._limit = limit_to

    def where(self, filter=None):
        return FakeQuery(self._collection, self._filters + (filter,), self._orders, self._limit)

    def order_by(self, field, direction="ASCENDING"):
        return FakeQuery(self._collection, self._filters, self._orders + ((field, direction),), self._limit)

    def limit(self, count):
        return FakeQuery(self._collection, self._filters, self._orders, count)

    def _matches(self, data):
        for f in self._filters:
            if f.field_path not in data:
                return False
            value = data[f.field_path]
            if f.op_string == "==" and value != f.value:
                return False
            if f.op_string == "array_contains" and f.value not in (value or []):
                return False
        return True

    def stream(self):
        docs = [(doc_id, data) for doc_id, data in self._collection._docs.items() if self._matches(data)]
        for field, direction in reversed(self._orders):
            # Firestore leaves out documents without the ordered field
            docs = [d for d in docs if field in d[1]]
            docs.sort(key=lambda d: d[1][field], reverse=direction == firestore.Query.DESCENDING)
        if self._limit is not None:
            docs = docs[:self._limit]
        return iter([FakeSnapshot(doc_id, copy.deepcopy(data), self._collection.document(doc_id))
                     for doc_id, data in docs])


class FakeCollection(FakeQuery):
    def __init__(self, db, path):
        self._db = db
        self._path = path
        super().__init__(self)

    @property
    def _docs(self):
        return self._db.docs.setdefault(self._path, {})

    def document(self, doc_id=None):
        if doc_id is None:
            doc_id = f"doc{next(self._db.ids)}"
        return FakeDocument(self._db, self._path, doc_id)


class FakeFirestore:
    """In-memory stand-in for a Firestore client: collections, queries and array transforms."""

    def __init__(self):
        self.docs = {}
        self.writes = []
        self.ids = itertools.count(1)

    def collection(self, name):
        return FakeCollection(self, (name,))

    def owned(self, name, owner=OWNER):
        return self.collection("users").document(owner).collection(name)

    def data(self, name, doc_id, owner=OWNER):
        return self.owned(name, owner).document(doc_id).get().to_dict()


@pytest.fixture
def db(monkeypatch):
    fake = FakeFirestore()
    monkeypatch.setattr(firestore, "client", Mock(return_value=fake))
    return fake


@pytest.fixture
def verify_id_token(monkeypatch):
    verify = Mock(return_value={"uid": OWNER})
    monkeypatch.setattr(auth_middleware.firebase_auth, "verify_id_token", verify)
    return verify


@pytest.fixture
def app(monkeypatch, db, verify_id_token):
    """Create a Flask app for testing."""
    monkeypatch.setattr(Settings, "DEV_MODE", True)
    monkeypatch.setattr(Settings, "FUNCTIONS_EMULATOR", False)
    monkeypatch.setattr(Settings, "FIRESTORE_EMULATOR_HOST", None)
    monkeypatch.setattr(Settings, "FIREBASE_AUTH_EMULATOR_HOST", None)
    app = create_app()
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    """Create a test client."""
    return app.test_client()


@pytest.fixture
def seed(db):
    """Write a document under the test owner: seed("works", "w1", {...})."""
    def _seed(name, doc_id, data, owner=OWNER):
        db.owned(name, owner).document(doc_id).set(data)
        return doc_id
    return _seed


@pytest.fixture
def grant(db):
    """Add the test user to another owner's collaborators: grant("boss")."""
    def _grant(owner):
        db.collection("users").document(owner).set({"name": owner, "collaboratorIds": [OWNER]}, merge=True)
    return _grant
