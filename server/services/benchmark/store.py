"""Per-run storage handle used by the benchmark engine.

The engine only talks to a ``WorkloadStore``; the SQLite implementation below
wraps one SQLAlchemy Core connection that lives for exactly one run.

Errors are split in two:
- ``OperationFailure``: a single statement failed (constraint, bad data). The
  engine drops the operation from its counts and keeps going.
- ``StorageError``: the connection is unusable (locked past the busy timeout,
  disk I/O, invalidated). The run aborts.
"""

import os
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Protocol

from sqlalchemy import Connection, bindparam, delete, func, insert, or_, select, update
from sqlalchemy.exc import DBAPIError, OperationalError

from core.exceptions import OperationFailure, StorageError
from models.benchmark import WorkloadRecord

_table = WorkloadRecord.__table__

_INSERT = insert(_table)
_SELECT_BY_ID = select(_table).where(_table.c.id == bindparam("record_id"))
_UPDATE_CONTENT = (
    update(_table)
    .where(_table.c.id == bindparam("record_id"))
    .values(content=bindparam("new_content"))
)
_DELETE_BY_ID = delete(_table).where(_table.c.id == bindparam("record_id"))
_COUNT = select(func.count()).select_from(_table)


class WorkloadStore(Protocol):
    """Storage operations a benchmark run needs (enables duck typing)."""

    def transaction(self) -> Any:
        """Context manager grouping several writes into one commit."""
        ...

    def insert(self, author: str, content: str, session_id: str, timestamp: int) -> int:
        """Insert one record and return its generated id."""
        ...

    def fetch(self, record_id: int) -> Optional[Any]:
        ...

    def update_content(self, record_id: int, content: str) -> None:
        ...

    def delete(self, record_id: int) -> None:
        ...

    def count(self) -> int:
        """Rows currently in the workload table, from every session."""
        ...

    def purge(self, session_id: str, older_than: int) -> int:
        """Delete every record of a session plus debris older than a timestamp."""
        ...

    def size_mb(self) -> float:
        """Current on-disk size of the data store in megabytes."""
        ...


class SQLiteWorkloadStore:
    """WorkloadStore over a single SQLAlchemy connection to the SQLite file."""

    def __init__(self, connection: Connection, database_path: str):
        self.connection = connection
        self.database_path = database_path
        self._in_transaction = False

    def _execute(self, operation: str, statement, params: dict):
        try:
            return self.connection.execute(statement, params)
        except OperationalError as e:
            raise StorageError(f"{operation} failed: {e.orig}") from e
        except DBAPIError as e:
            if e.connection_invalidated:
                raise StorageError(f"{operation} failed: {e.orig}") from e
            raise OperationFailure(operation, str(e.orig)) from e

    @contextmanager
    def _autocommit(self, operation: str) -> Iterator[None]:
        """Commit a single statement unless an explicit transaction is open."""
        if self._in_transaction:
            yield
            return
        with self.transaction(operation):
            yield

    @contextmanager
    def transaction(self, operation: str = "transaction") -> Iterator[None]:
        try:
            with self.connection.begin():
                self._in_transaction = True
                yield
        except OperationalError as e:
            raise StorageError(f"{operation} failed: {e.orig}") from e
        finally:
            self._in_transaction = False

    def insert(self, author: str, content: str, session_id: str, timestamp: int) -> int:
        with self._autocommit("insert"):
            result = self._execute("insert", _INSERT, {
                "author": author,
                "content": content,
                "test_session": session_id,
                "timestamp": timestamp,
            })
            return result.inserted_primary_key[0]

    def fetch(self, record_id: int):
        with self._autocommit("read"):
            return self._execute("read", _SELECT_BY_ID, {"record_id": record_id}).first()

    def update_content(self, record_id: int, content: str) -> None:
        with self._autocommit("update"):
            self._execute("update", _UPDATE_CONTENT, {
                "record_id": record_id,
                "new_content": content,
            })

    def delete(self, record_id: int) -> None:
        with self._autocommit("delete"):
            self._execute("delete", _DELETE_BY_ID, {"record_id": record_id})

    def count(self) -> int:
        with self._autocommit("count"):
            return self._execute("count", _COUNT, {}).scalar_one()

    def purge(self, session_id: str, older_than: int) -> int:
        statement = delete(_table).where(
            or_(_table.c.test_session == session_id, _table.c.timestamp < older_than)
        )
        try:
            with self.connection.begin():
                return self.connection.execute(statement).rowcount
        except DBAPIError as e:
            raise StorageError(f"cleanup failed: {e.orig}") from e

    def size_mb(self) -> float:
        if not self.database_path or self.database_path == ":memory:":
            return 0.0
        try:
            return os.path.getsize(self.database_path) / 1024 / 1024
        except OSError as e:
            raise StorageError(f"Cannot stat database file: {e}") from e
