"""
Shared fixtures.

Firestore is replaced by a small in-memory double that supports the calls
the application makes: collection/document chaining, set/get/update/delete
and stream.
"""

import pytest
from fastapi.testclient import TestClient

import expenses
import main
import participants
from config.settings import Settings, get_settings
from expenses import Expense


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocument:
    def __init__(self, store, path):
        self._store = store
        self._path = path

    @property
    def id(self):
        return self._path[-1]

    def collection(self, name):
        return FakeCollection(self._store, self._path + (name,))

    def set(self, data):
        self._store[self._path] = dict(data)

    def update(self, data):
        if self._path not in self._store:
            raise KeyError(f"No document to update: {'/'.join(self._path)}")
        self._store[self._path].update(data)

    def delete(self):
        self._store.pop(self._path, None)

    def get(self):
        return FakeSnapshot(self.id, self._store.get(self._path))


class FakeCollection:
    def __init__(self, store, path):
        self._store = store
        self._path = path

    def document(self, doc_id):
        return FakeDocument(self._store, self._path + (doc_id,))

    def stream(self):
        depth = len(self._path) + 1
        for path, data in list(self._store.items()):
            if len(path) == depth and path[:-1] == self._path:
                yield FakeSnapshot(path[-1], data)


class FakeFirestore:
    def __init__(self):
        self.store = {}

    def collection(self, name):
        return FakeCollection(self.store, (name,))


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeFirestore()
    for module in (participants, expenses, main):
        monkeypatch.setattr(module, "get_db", lambda: db)
    return db


@pytest.fixture
def no_db(monkeypatch):
    for module in (participants, expenses, main):
        monkeypatch.setattr(module, "get_db", lambda: None)


@pytest.fixture
def empty_trip(fake_db):
    """A trip document with no participants yet."""
    fake_db.collection("trips").document("trip_1").set({"trip_id": "trip_1"})
    return "trip_1"


@pytest.fixture
def trip(empty_trip):
    """A trip with four participants."""
    for name in ["Jimmy", "Serena", "Mom", "Sis"]:
        participants.add_participant(empty_trip, name)
    return empty_trip


@pytest.fixture
def settings():
    return Settings(_env_file=None, exchange_rate=0.2)


@pytest.fixture
def client(fake_db, settings):
    main.app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()


def make_expense(expense_id, amount, payer, split_with, currency="TWD",
                 category="food", date="2024-11-15"):
    return Expense(
        expense_id=expense_id,
        amount=amount,
        currency=currency,
        payer=payer,
        split_with=split_with,
        date=date,
        category=category,
    )
