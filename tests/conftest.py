"""
Shared fixtures: an in-memory stand-in for the Motor collection API.

Only the calls the tracker makes are implemented. Queries are plain
field equality; updates support $set and $inc.
"""
import copy
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from apk_tracker.database import Collections
from apk_tracker.services.aggregator import DashboardService
from apk_tracker.services.gateway import DataGateway

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _matches(doc: dict, query: dict) -> bool:
    return all(doc.get(field) == value for field, value in (query or {}).items())


class FakeCursor:
    def __init__(self, collection, docs):
        self._collection = collection
        self._docs = docs

    def sort(self, key, direction=1):
        self._docs = sorted(
            self._docs,
            key=lambda d: (d.get(key) is not None, d.get(key)),
            reverse=direction < 0
        )
        return self

    async def to_list(self, length=None):
        self._collection._maybe_fail("find")
        docs = [copy.deepcopy(d) for d in self._docs]
        return docs if length is None else docs[:length]

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        self._collection._maybe_fail("find")
        try:
            return copy.deepcopy(next(self._iter))
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    """Async, in-memory subset of AsyncIOMotorCollection."""

    def __init__(self, name: str, unique=()):
        self.name = name
        self.docs = []
        self.unique = tuple(unique)
        self.indexes = []
        self.sessions = []
        self._fail_ops = set()
        self._error = None

    def fail(self, *ops, error=None):
        """Make the named operations (or all, if none named) raise."""
        self._fail_ops = set(ops) or {"*"}
        self._error = error or ServerSelectionTimeoutError("connection timed out")

    def recover(self):
        self._fail_ops = set()
        self._error = None

    def _maybe_fail(self, op):
        if "*" in self._fail_ops or op in self._fail_ops:
            raise self._error

    def find(self, query=None):
        return FakeCursor(self, [d for d in self.docs if _matches(d, query)])

    async def find_one(self, query=None):
        self._maybe_fail("find_one")
        for doc in self.docs:
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def insert_one(self, doc, session=None):
        self._maybe_fail("insert_one")
        for field in self.unique:
            if any(d.get(field) == doc.get(field) for d in self.docs):
                raise DuplicateKeyError(f"E11000 duplicate key error collection: {self.name} index: {field}_1")
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc.get("_id"))

    async def update_one(self, query, update, session=None):
        self._maybe_fail("update_one")
        for doc in self.docs:
            if _matches(doc, query):
                doc.update(update.get("$set", {}))
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def delete_one(self, query, session=None):
        self._maybe_fail("delete_one")
        self.sessions.append(session)
        for i, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def delete_many(self, query, session=None):
        self._maybe_fail("delete_many")
        self.sessions.append(session)
        keep = [d for d in self.docs if not _matches(d, query)]
        deleted = len(self.docs) - len(keep)
        self.docs = keep
        return SimpleNamespace(deleted_count=deleted)

    async def count_documents(self, query):
        self._maybe_fail("count_documents")
        return sum(1 for d in self.docs if _matches(d, query))

    async def distinct(self, field, query=None):
        self._maybe_fail("distinct")
        values = []
        for doc in self.docs:
            if _matches(doc, query) and field in doc and doc[field] not in values:
                values.append(doc[field])
        return values

    async def find_one_and_update(self, query, update, upsert=False, return_document=ReturnDocument.BEFORE):
        self._maybe_fail("find_one_and_update")
        doc = next((d for d in self.docs if _matches(d, query)), None)
        if doc is None:
            if not upsert:
                return None
            doc = dict(query)
            self.docs.append(doc)
        before = copy.deepcopy(doc)
        for field, amount in update.get("$inc", {}).items():
            doc[field] = doc.get(field, 0) + amount
        doc.update(update.get("$set", {}))
        return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before

    async def create_index(self, keys, **kwargs):
        self._maybe_fail("create_index")
        self.indexes.append((keys, kwargs))
        return str(keys)


class FakeTransaction:
    """Snapshots the collections on entry and restores them if the block raises."""

    def __init__(self, client):
        self.client = client

    async def __aenter__(self):
        self.snapshot = {c.name: copy.deepcopy(c.docs) for c in self.client.collections}
        self.client.transactions_started += 1
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            for c in self.client.collections:
                c.docs = self.snapshot[c.name]
            self.client.transactions_aborted += 1
        else:
            self.client.transactions_committed += 1
        return False


class FakeSession:
    def __init__(self, client):
        self.client = client

    def start_transaction(self):
        return FakeTransaction(self.client)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeAdmin:
    def __init__(self, client):
        self.client = client

    async def command(self, name):
        if self.client.down:
            raise ServerSelectionTimeoutError("connection timed out")
        return {"ok": 1.0}


class FakeClient:
    """Just enough of AsyncIOMotorClient for ping and session transactions."""

    def __init__(self, collections: Collections):
        self.collections = [collections.apps, collections.installs, collections.opens, collections.counters]
        self.admin = FakeAdmin(self)
        self.down = False
        self.transactions_started = 0
        self.transactions_committed = 0
        self.transactions_aborted = 0

    async def start_session(self):
        return FakeSession(self)


def make_collections() -> Collections:
    return Collections(
        apps=FakeCollection("apps", unique=("app_key", "id")),
        installs=FakeCollection("app_installs"),
        opens=FakeCollection("app_opens"),
        counters=FakeCollection("counters"),
    )


def add_install(collections: Collections, app_key: str, device_id: str = "device-1", minutes: int = 0, package_name=None):
    collections.installs.docs.append({
        "id": len(collections.installs.docs) + 1,
        "app_key": app_key,
        "device_id": device_id,
        "package_name": package_name,
        "installed_at": BASE_TIME + timedelta(minutes=minutes),
    })


def add_open(collections: Collections, app_key: str, device_id: str = "device-1", minutes: int = 0):
    collections.opens.docs.append({
        "id": len(collections.opens.docs) + 1,
        "app_key": app_key,
        "device_id": device_id,
        "opened_at": BASE_TIME + timedelta(minutes=minutes),
    })


def add_app(collections: Collections, app_id: int, app_key: str, app_name: str = "App", package_name: str = "com.example.app", minutes: int = 0):
    collections.apps.docs.append({
        "id": app_id,
        "app_key": app_key,
        "app_name": app_name,
        "package_name": package_name,
        "created_at": BASE_TIME + timedelta(minutes=minutes),
    })
    counter = next((d for d in collections.counters.docs if d["_id"] == "apps"), None)
    if counter is None:
        collections.counters.docs.append({"_id": "apps", "seq": app_id})
    else:
        counter["seq"] = max(counter["seq"], app_id)


@pytest.fixture
def collections():
    return make_collections()


@pytest.fixture
def gateway(collections):
    return DataGateway(collections, use_transactions=False)


@pytest.fixture
def dashboard_service(gateway):
    return DashboardService(gateway, strategy="count")


@pytest.fixture
def seeded(collections):
    """Two apps, one orphaned key, a handful of installs/opens."""
    add_app(collections, 1, "apk_1_abc", "Alpha", "com.example.alpha", minutes=0)
    add_app(collections, 2, "apk_2_def", "Beta", "com.example.beta", minutes=10)
    for i in range(3):
        add_install(collections, "apk_1_abc", device_id=f"a-{i}", minutes=i)
    for i in range(5):
        add_open(collections, "apk_1_abc", device_id=f"a-{i}", minutes=i)
    add_install(collections, "apk_2_def", device_id="b-0", minutes=20)
    add_install(collections, "apk_gone_zzz", device_id="x-0", minutes=30)
    add_open(collections, "apk_gone_zzz", device_id="x-0", minutes=31)
    add_open(collections, "apk_gone_zzz", device_id="x-1", minutes=32)
    return collections
