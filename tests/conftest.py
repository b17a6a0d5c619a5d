"""
Shared fixtures: a scripted psycopg2 stand-in and sample callers.

FakeCursor answers each execute() with the next scripted result:
- a dict  -> one row (fetchone returns it, fetchall returns [it])
- a list  -> many rows (fetchone returns the first or None)
- None    -> no rows
- an Exception instance -> raised from execute()
"""

from unittest.mock import patch

import pytest

from app.shared.auth import Caller, LicenseType, Role


class FakeCursor:
    def __init__(self, results=None):
        self.results = list(results or [])
        self.executed = []
        self._current = None
        self.closed = False

    def execute(self, sql, params=None):
        self.executed.append((" ".join(sql.split()), params))
        self._current = self.results.pop(0) if self.results else None
        if isinstance(self._current, Exception):
            raise self._current

    def fetchone(self):
        if isinstance(self._current, list):
            return self._current[0] if self._current else None
        return self._current

    def fetchall(self):
        if self._current is None:
            return []
        if isinstance(self._current, list):
            return self._current
        return [self._current]

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, *args, **kwargs):
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


@pytest.fixture
def fake_db():
    """
    Install a scripted connection for the duration of a test.

    Usage: conn = fake_db(row1, [row2, row3], None)
    """
    patcher = None

    def install(*results):
        nonlocal patcher
        conn = FakeConnection(FakeCursor(results))
        patcher = patch("app.shared.db.get_db", return_value=conn)
        patcher.start()
        return conn

    yield install

    if patcher is not None:
        patcher.stop()


@pytest.fixture
def patient_caller():
    return Caller(user_id="user-p1", role=Role.PATIENT, patient_id="patient-1")


@pytest.fixture
def md_caller():
    return Caller(
        user_id="user-md",
        role=Role.PROVIDER,
        provider_id="provider-md",
        license_type=LicenseType.MD,
    )


@pytest.fixture
def np_caller():
    return Caller(
        user_id="user-np",
        role=Role.PROVIDER,
        provider_id="provider-np",
        license_type=LicenseType.NP,
    )


@pytest.fixture
def admin_caller():
    return Caller(user_id="user-admin", role=Role.ADMIN)
