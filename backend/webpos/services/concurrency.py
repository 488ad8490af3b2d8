# Overview: Transaction helpers for write paths that touch shared stock.

from __future__ import annotations

import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import InternalError


def has_uncommitted_work(session) -> bool:
    """
    True when the session carries writes that are not committed yet.

    Covers unflushed objects on every backend. Flushed-but-uncommitted DML is
    only visible through the driver on SQLite.
    """
    if session.new or session.dirty or session.deleted:
        return True
    if session.get_bind().dialect.name == "sqlite" and session.in_transaction():
        return bool(session.connection().connection.dbapi_connection.in_transaction)
    return False


def begin_write(session) -> None:
    """
    Take the database write lock up-front for the current unit of work.

    SQLite only: BEGIN IMMEDIATE grabs the RESERVED lock now instead of at
    the first write, so two checkouts cannot both hold read locks and then
    deadlock upgrading them. Other backends rely on the conditional UPDATE.

    Raises InternalError when the session already holds uncommitted writes.
    The session is left as it was.
    """
    if has_uncommitted_work(session):
        raise InternalError(
            "Write transaction requested on a session with uncommitted changes"
        )
    if session.get_bind().dialect.name == "sqlite":
        session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(session, func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (busy database, deadlocks) and
    StaleDataError. The session is rolled back before every retry so
    ``func`` always starts from a clean transaction.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
