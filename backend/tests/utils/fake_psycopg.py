"""
Lightweight psycopg stand-in for unit tests.

Provides ``install_fake_psycopg`` which monkeypatches a target module so that
``psycopg.connect`` returns a scripted connection. Each ``execute`` records the
SQL and parameters and consumes the next scripted result (row, rows, rowcount),
which lets tests assert on the statements DBClassroomStore issues without a
running Postgres.
"""
from __future__ import annotations

import types
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence


class FakeError(Exception):
    """Stands in for ``psycopg.Error``."""


class FakeOperationalError(FakeError):
    pass


@dataclass
class Result:
    row: Optional[tuple] = None
    rows: Optional[List[tuple]] = None
    rowcount: int = 0


@dataclass
class FakeDB:
    script: List[Result] = field(default_factory=list)
    executed: List[tuple] = field(default_factory=list)
    commits: int = 0
    connects: List[dict] = field(default_factory=list)
    connect_error: Optional[Exception] = None

    def push(self, row: Optional[tuple] = None, *, rows: Optional[List[tuple]] = None, rowcount: int = 0) -> None:
        self.script.append(Result(row=row, rows=rows, rowcount=rowcount))

    @property
    def statements(self) -> List[str]:
        return [" ".join(sql.split()).lower() for sql, _ in self.executed]


class _FakeCursor:
    def __init__(self, db: FakeDB) -> None:
        self._db = db
        self._result = Result()
        self.rowcount = -1

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> None:
        self._db.executed.append((sql, tuple(params or ())))
        if not self._db.script:
            raise AssertionError(f"Unexpected SQL in fake psycopg: {sql}")
        self._result = self._db.script.pop(0)
        self.rowcount = self._result.rowcount

    def fetchone(self):
        return self._result.row

    def fetchall(self):
        return self._result.rows or []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class _FakeConn:
    def __init__(self, db: FakeDB) -> None:
        self._db = db

    def cursor(self):
        return _FakeCursor(self._db)

    def commit(self) -> None:
        self._db.commits += 1

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def install_fake_psycopg(monkeypatch, target_module) -> FakeDB:
    """
    Patch ``target_module`` so psycopg operations go against a scripted fake.

    Returns the ``FakeDB`` used to script results and inspect executed SQL.
    """
    db = FakeDB()

    def fake_connect(dsn: str, **kwargs: Any):
        db.connects.append({"dsn": dsn, **kwargs})
        if db.connect_error is not None:
            raise db.connect_error
        return _FakeConn(db)

    fake_psycopg = types.SimpleNamespace(
        connect=fake_connect,
        Error=FakeError,
        OperationalError=FakeOperationalError,
    )
    monkeypatch.setattr(target_module, "HAVE_PSYCOPG", True, raising=False)
    monkeypatch.setattr(target_module, "psycopg", fake_psycopg, raising=False)
    return db


__all__ = ["FakeDB", "FakeError", "FakeOperationalError", "install_fake_psycopg"]
