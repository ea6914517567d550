# Overview: Retry helper for writes that can lose a race against another request.

"""
Cart merge race

Two add-to-cart requests for the same (user, item) can both see "no line
yet" and both INSERT. The unique constraint on cart(user_id, item_id)
rejects the second with IntegrityError. Re-running the whole read-then-write
after a rollback lets the loser find the winner's row and increment it.

SQLite can also report "database is locked" (OperationalError) under
concurrent writers; that is retried the same way.
"""

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError

from ..extensions import db


DEFAULT_RETRY_ON = (IntegrityError, OperationalError)


def run_with_retry(operation, *, attempts: int = 2, backoff: float = 0.02, retry_on=DEFAULT_RETRY_ON):
    """
    Call operation() until it succeeds or attempts run out.

    The session is rolled back before every retry, so operation must redo
    its own reads. The final failure is re-raised unchanged.
    """
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except retry_on as exc:
            db.session.rollback()
            if attempt == attempts:
                raise
            current_app.logger.info(
                "Retrying after %s (attempt %d of %d)", exc.__class__.__name__, attempt, attempts
            )
            time.sleep(backoff * attempt)
