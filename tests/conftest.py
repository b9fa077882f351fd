"""Shared fixtures: an in-memory stand-in for the async Supabase client."""

import copy
import itertools
import os
import uuid
from datetime import datetime, timedelta, timezone

os.environ.setdefault("LOG_TO_FILE", "false")

import pytest
from postgrest.exceptions import APIError
from storage3.exceptions import StorageApiError


class FakeResult:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Chainable query builder over FakeDatabase tables."""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = None
        self.payload = None
        self.columns = "*"
        self.on_conflict = None
        self.filters = []
        self.order_by = None
        self.window = None

    # --- operations ---

    def select(self, columns="*"):
        self.op, self.columns = "select", columns
        return self

    def insert(self, rows):
        self.op, self.payload = "insert", rows
        return self

    def update(self, values):
        self.op, self.payload = "update", values
        return self

    def upsert(self, rows, on_conflict=None):
        self.op, self.payload, self.on_conflict = "upsert", rows, on_conflict
        return self

    def delete(self):
        self.op = "delete"
        return self

    # --- modifiers ---

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, size):
        self.window = (0, size - 1)
        return self

    def range(self, start, end):
        self.window = (start, end)
        return self

    def _matches(self, row):
        return all(row.get(col) == val for col, val in self.filters)

    async def execute(self):
        self.db.calls.append((self.table, self.op))
        failure = self.db.failures.get((self.table, self.op)) or self.db.failures.get((self.table, None))
        if failure:
            raise APIError({"message": failure, "code": "XX000", "hint": None, "details": None})

        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "select":
            found = [r for r in rows if self._matches(r)]
            if self.order_by:
                col, desc = self.order_by
                found.sort(key=lambda r: (r.get(col) is not None, r.get(col) or ""), reverse=desc)
            if self.window:
                found = found[self.window[0]:self.window[1] + 1]
            if self.columns != "*":
                cols = [c.strip() for c in self.columns.split(",")]
                found = [{c: r.get(c) for c in cols} for r in found]
            return FakeResult(copy.deepcopy(found))

        if self.op == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = [self.db.new_row(values) for values in payload]
            rows.extend(inserted)
            return FakeResult(copy.deepcopy(inserted))

        if self.op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(row)
            return FakeResult(copy.deepcopy(updated))

        if self.op == "delete":
            removed = [r for r in rows if self._matches(r)]
            rows[:] = [r for r in rows if not self._matches(r)]
            return FakeResult(copy.deepcopy(removed))

        if self.op == "upsert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            result = []
            for values in payload:
                key = self.on_conflict or "id"
                existing = next((r for r in rows if r.get(key) == values.get(key)), None)
                if existing is not None:
                    existing.update(copy.deepcopy(values))
                    result.append(existing)
                else:
                    row = self.db.new_row(values)
                    rows.append(row)
                    result.append(row)
            return FakeResult(copy.deepcopy(result))

        raise AssertionError(f"query on {self.table} executed without an operation")


class FakeDatabase:
    """Tables as lists of dicts, with a call log and failure injection."""

    def __init__(self):
        self.tables = {}
        self.calls = []
        self.failures = {}
        self._clock = itertools.count(1)

    def new_row(self, values):
        row = copy.deepcopy(values)
        row.setdefault("id", uuid.uuid4().hex)
        row.setdefault("created_at", self.timestamp())
        return row

    def timestamp(self):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        return (base + timedelta(minutes=next(self._clock))).isoformat()

    def fail(self, table, message="remote failure", op=None):
        self.failures[(table, op)] = message

    def seed(self, table, *rows):
        for values in rows:
            self.tables.setdefault(table, []).append(self.new_row(values))

    def rows(self, table):
        return self.tables.get(table, [])


class FakeBucket:
    def __init__(self, storage, bucket):
        self.storage = storage
        self.bucket = bucket

    def _check(self, op):
        self.storage.calls.append((self.bucket, op))
        message = self.storage.failures.get(op)
        if message:
            raise StorageApiError(message, "InternalError", 500)

    async def list(self, path=None, options=None):
        self._check("list")
        prefix = f"{path}/" if path else ""
        return [{"name": key[len(prefix):]} for key in self.storage.objects.get(self.bucket, {})
                if key.startswith(prefix)]

    async def upload(self, path, file, file_options=None):
        self._check("upload")
        objects = self.storage.objects.setdefault(self.bucket, {})
        upsert = (file_options or {}).get("upsert") == "true"
        if path in objects and not upsert:
            raise StorageApiError("The resource already exists", "Duplicate", 409)
        objects[path] = file
        self.storage.uploads.append((path, file, file_options))
        return {"path": path}

    async def get_public_url(self, path, options=None):
        return f"https://project.supabase.co/storage/v1/object/public/{self.bucket}/{path}"


class FakeStorage:
    def __init__(self):
        self.objects = {}
        self.uploads = []
        self.calls = []
        self.failures = {}

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeSupabase:
    def __init__(self):
        self.db = FakeDatabase()
        self.storage = FakeStorage()

    def table(self, name):
        return FakeQuery(self.db, name)


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def db(supabase):
    return supabase.db
