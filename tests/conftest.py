"""
Shared fixtures for the auth code service tests.

- In-memory stand-in for the Appwrite users and documents APIs
- Controllable clock and code generator
- Settings pointing at fake database and collection ids
"""

import json
import os
from collections import defaultdict
from datetime import datetime, timedelta, timezone

import pytest

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from authcode.core.config import Settings  # noqa: E402
from authcode.services.AppwriteClient import AppwriteError  # noqa: E402
from authcode.services.LoginCodeService import LoginCodeService  # noqa: E402

FIXED_CODE = "482913"
START_MS = 1_760_000_000_000


class FakeAppwriteClient:
    """In-memory users and document collections with Appwrite query semantics."""

    def __init__(self):
        self.users = {}
        self.collections = defaultdict(dict)
        self.fail = set()
        self.calls = []
        self._seq = 0

    def _next_id(self) -> str:
        self._seq += 1
        return f"id{self._seq:04d}"

    def _created_at(self) -> str:
        stamp = datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=self._seq)
        return stamp.isoformat()

    def _check(self, operation: str):
        self.calls.append(operation)
        if operation in self.fail:
            raise AppwriteError(f"{operation} unavailable", code=503)

    def _apply(self, records, queries):
        records = list(records)
        limit = None
        for raw in queries or []:
            query = json.loads(raw)
            if query["method"] == "equal":
                records = [r for r in records if r.get(query["attribute"]) in query["values"]]
            elif query["method"] == "orderDesc":
                records.sort(key=lambda r: r[query["attribute"]], reverse=True)
            elif query["method"] == "limit":
                limit = query["values"][0]
        return records[:limit] if limit is not None else records

    def documents(self, db, coll):
        return list(self.collections[(db, coll)].values())

    async def list_users(self, queries=None):
        self._check("list_users")
        users = self._apply(self.users.values(), queries)
        return {"total": len(users), "users": users}

    async def create_user(self, user_id, email):
        self._check("create_user")
        if any(u["email"] == email for u in self.users.values()):
            raise AppwriteError("A user with the same email already exists", code=409)
        new_id = self._next_id() if user_id == "unique()" else user_id
        self.users[new_id] = {"$id": new_id, "email": email}
        return dict(self.users[new_id])

    async def list_documents(self, db, coll, queries=None):
        self._check("list_documents")
        documents = self._apply(self.collections[(db, coll)].values(), queries)
        return {"total": len(documents), "documents": [dict(d) for d in documents]}

    async def create_document(self, db, coll, document_id, data):
        self._check("create_document")
        generated = self._next_id()
        new_id = generated if document_id == "unique()" else document_id
        if new_id in self.collections[(db, coll)]:
            raise AppwriteError("Document with the requested ID already exists", code=409)
        document = {"$id": new_id, "$createdAt": self._created_at(), **data}
        self.collections[(db, coll)][new_id] = document
        return dict(document)

    async def upsert_document(self, db, coll, document_id, data):
        self._check("upsert_document")
        self._next_id()
        existing = self.collections[(db, coll)].get(document_id)
        created_at = existing["$createdAt"] if existing else self._created_at()
        document = {"$id": document_id, "$createdAt": created_at, **data}
        self.collections[(db, coll)][document_id] = document
        return dict(document)

    async def update_document(self, db, coll, document_id, data):
        self._check("update_document")
        if document_id not in self.collections[(db, coll)]:
            raise AppwriteError("Document not found", code=404)
        self.collections[(db, coll)][document_id].update(data)
        return dict(self.collections[(db, coll)][document_id])

    async def delete_document(self, db, coll, document_id):
        self._check("delete_document")
        if document_id not in self.collections[(db, coll)]:
            raise AppwriteError("Document not found", code=404)
        del self.collections[(db, coll)][document_id]


class FakeClock:
    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, minutes: float = 0, ms: int = 0):
        self.now += int(minutes * 60 * 1000) + ms


def make_settings(**overrides) -> Settings:
    values = dict(
        DEV_MODE=True,
        APPWRITE_ENDPOINT="https://appwrite.test/v1",
        APPWRITE_PROJECT_ID="project",
        APPWRITE_API_KEY="key",
        APPWRITE_DB_ID="db",
        APPWRITE_LOGIN_CODES_COLLECTION_ID="login_codes",
        APPWRITE_USER_PROFILES_COLLECTION_ID="user_profiles",
        BCRYPT_ROUNDS=4,
        SECRET_KEY="",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def store():
    return FakeAppwriteClient()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service_factory(store, clock):
    def build(**overrides):
        return LoginCodeService(
            store,
            make_settings(**overrides),
            clock=clock,
            code_generator=lambda: FIXED_CODE,
        )
    return build


@pytest.fixture
def service(service_factory):
    return service_factory()
