# Overview: Retry helpers for optimistic-locking conflicts on warehouse rows.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB unit of work with retry on concurrency-related failures.

    Retries on OperationalError (database locked) and StaleDataError
    (Warehouse.version_id mismatch). `func` must re-read whatever it
    validates, since the session is rolled back between attempts.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
