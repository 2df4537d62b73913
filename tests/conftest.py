"""Shared pytest fixtures for guesthouse tests."""
import sys
sys.dont_write_bytecode = True

from contextlib import contextmanager  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402

from tests.helpers import ADMIN_SECRET  # noqa: E402


class FakeDatabase:
    """Stand-in for guesthouse.infra.db.Database.

    Every txn() yields the same MagicMock cursor and counts commits and
    rollbacks, so tests can assert how many transactions an operation used.
    """

    def __init__(self) -> None:
        self.cursor = MagicMock()
        self.opened = False
        self.commits = 0
        self.rollbacks = 0

    @property
    def is_open(self) -> bool:
        return self.opened

    def open(self) -> None:
        self.opened = True

    def close(self) -> None:
        self.opened = False

    @property
    def txn_count(self) -> int:
        return self.commits + self.rollbacks

    @contextmanager
    def txn(self):
        try:
            yield self.cursor
        except Exception:
            self.rollbacks += 1
            raise
        self.commits += 1


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def admin_secret(monkeypatch) -> str:
    monkeypatch.setenv("ADMIN_JWT_SECRET", ADMIN_SECRET)
    return ADMIN_SECRET
