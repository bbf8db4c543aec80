"""
Pytest fixtures
───────────────
• In-memory stand-ins for the table gateway and the media bucket, so no
  test talks to Supabase.
• A tiny fake supabase-py client for the gateway wrapper tests.
"""
from __future__ import annotations

import copy
import itertools

import pytest

from espacos.errors import GatewayError
from espacos.schema import Actor


# ─────────────────────────────────────────────────────────────────────────────
# 1. Gateway / storage doubles
# ─────────────────────────────────────────────────────────────────────────────
class FakeGateway:
    def __init__(self, rows=None):
        self.rows = {r["id"]: copy.deepcopy(r) for r in rows or []}
        self.calls = []
        self.fail_with = None
        self._ids = itertools.count(1)

    def _maybe_fail(self):
        if self.fail_with:
            raise GatewayError(self.fail_with)

    def insert(self, record):
        self.calls.append(("insert", copy.deepcopy(record)))
        self._maybe_fail()
        row = dict(record, id=f"s{next(self._ids)}")
        self.rows[row["id"]] = row
        return copy.deepcopy(row)

    def update(self, space_id, patch):
        self.calls.append(("update", space_id, copy.deepcopy(patch)))
        self._maybe_fail()
        self.rows[space_id].update(patch)
        return copy.deepcopy(self.rows[space_id])

    def delete(self, space_id):
        self.calls.append(("delete", space_id))
        self._maybe_fail()
        self.rows.pop(space_id, None)

    def select_by_id(self, space_id):
        row = self.rows.get(space_id)
        return copy.deepcopy(row) if row else None

    def select_all(self, order_by="created_at", descending=True):
        rows = sorted(self.rows.values(), key=lambda r: r.get(order_by) or "", reverse=descending)
        return copy.deepcopy(rows)


class FakeStorage:
    bucket = "spaces"

    def __init__(self):
        self.objects = {}
        self.calls = []
        self.fail_upload = None
        self.fail_remove = None

    def upload(self, path, data, content_type):
        self.calls.append(("upload", path))
        if self.fail_upload:
            raise GatewayError(self.fail_upload)
        self.objects[path] = data
        return f"https://demo.supabase.co/storage/v1/object/public/spaces/{path}"

    def remove(self, path):
        self.calls.append(("remove", path))
        if self.fail_remove:
            raise GatewayError(self.fail_remove)
        self.objects.pop(path, None)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def actor():
    return Actor(id="user-1", email="editor@example.org", role="editor", can_manage=True)


@pytest.fixture
def viewer():
    return Actor(id="user-2", email="viewer@example.org", role=None, can_manage=False)


# ─────────────────────────────────────────────────────────────────────────────
# 2. Fake supabase-py client (query builder + storage + auth)
# ─────────────────────────────────────────────────────────────────────────────
class _Resp:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, client, table):
        self.client, self.table = client, table
        self.ops = []

    def __getattr__(self, name):
        def _op(*args, **kwargs):
            self.ops.append((name, args, kwargs))
            return self
        return _op

    def execute(self):
        self.client.log.append((self.table, self.ops))
        if self.client.error:
            raise self.client.error
        return _Resp(self.client.data)


class FakeBucket:
    def __init__(self, client, name):
        self.client, self.name = client, name

    def upload(self, path, data, options):
        self.client.log.append(("upload", self.name, path, options))
        if self.client.error:
            raise self.client.error

    def get_public_url(self, path):
        return f"https://demo.supabase.co/storage/v1/object/public/{self.name}/{path}?"

    def remove(self, paths):
        self.client.log.append(("remove", self.name, paths))
        if self.client.error:
            raise self.client.error


class FakeClient:
    def __init__(self, data=None, error=None, user=None):
        self.data, self.error, self.log = data, error, []
        self.storage = self
        self.auth = self
        self._user = user

    def table(self, name):
        return FakeQuery(self, name)

    def from_(self, bucket):
        return FakeBucket(self, bucket)

    def get_user(self):
        return _Resp(None) if self._user is None else type("R", (), {"user": self._user})()

    def sign_in_with_password(self, credentials):
        self.log.append(("sign_in", credentials["email"]))
        self._user = {"id": "u-admin", "email": credentials["email"],
                      "app_metadata": {"role": "admin"}}
        return type("R", (), {"user": self._user})()

    def sign_out(self):
        self.log.append(("sign_out",))
        self._user = None


@pytest.fixture
def fake_client():
    return FakeClient
