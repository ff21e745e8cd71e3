# Overview: Row locking and retry helpers for read-modify-write operations on stock.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    SELECT ... FOR UPDATE on the rows a stock movement is about to change.

    NOTE: SQLite ignores FOR UPDATE; there the version_id columns on
    Voucher and EmployeeStock catch concurrent writers instead.
    """
    return query.with_for_update()


def run_with_retry(func, *, session=None, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func, retrying when the database reports lock contention
    (OperationalError) or a lost optimistic-lock race (StaleDataError).

    func must redo its work from scratch: the session is rolled back
    before every new attempt. Backoff doubles each time. The last error
    propagates once attempts are used up.
    """
    session = session if session is not None else db.session
    attempt = 1
    while True:
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            session.rollback()
            if attempt >= attempts:
                raise
            current_app.logger.warning(
                "Retrying after %s (attempt %s of %s)", type(exc).__name__, attempt, attempts
            )
            time.sleep(backoff_base * (2 ** (attempt - 1)))
            attempt += 1
