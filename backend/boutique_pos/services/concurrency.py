# Overview: Transaction helpers for multi-record writes on the local database.

from __future__ import annotations

import time
from typing import Callable, TypeVar

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

T = TypeVar("T")

RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def begin_immediate() -> None:
    """
    Take the SQLite write lock before a multi-record write.

    NOTE: Other databases serialize through their own isolation level, so this
    is a no-op there. Also a no-op when the connection already has an open
    transaction (pending work stays in it).
    """
    if db.engine.dialect.name != "sqlite":
        return
    raw = db.session.connection().connection
    if not getattr(raw, "in_transaction", False):
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(
    op: Callable[[], T],
    *,
    label: str = "write",
    attempts: int = 3,
    backoff_base: float = 0.1,
) -> T:
    """
    Run op, rolling back and retrying on a locked database or a stale
    Product.version_id. Anything else rolls back and propagates at once.
    """
    for attempt in range(1, attempts + 1):
        try:
            return op()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            if attempt == attempts:
                current_app.logger.error("%s failed after %d attempts: %s", label, attempts, exc)
                raise
            current_app.logger.warning("%s retry %d/%d: %s", label, attempt, attempts - 1, exc)
            time.sleep(backoff_base * (2 ** (attempt - 1)))
        except Exception:
            db.session.rollback()
            raise
    raise RuntimeError("attempts must be >= 1")
