"""
Transaction boundaries for core operations.

A ``transactional`` operation commits once when it returns and rolls back
on any error. Called from inside another transactional operation it joins
the outer transaction instead, so composed operations commit or fail as a
unit. Lock conflicts are retried a bounded number of times; other
database failures surface as ``PersistenceError``.
"""
import logging
import time
from functools import wraps

from flask import current_app
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from workshop.database import db
from workshop.errors import PersistenceError, WorkshopError

logger = logging.getLogger(__name__)

_ACTIVE = 'workshop.transaction_active'

# PostgreSQL deadlock / serialization failure / lock timeout, MySQL deadlock / lock wait timeout.
_LOCK_CONFLICT_CODES = {'40P01', '40001', '55P03', 1213, 1205}
_LOCK_CONFLICT_MARKERS = ('deadlock', 'lock wait timeout', 'database is locked', 'could not obtain lock')


def is_lock_conflict(error):
    if not isinstance(error, DBAPIError):
        return False
    original = getattr(error, 'orig', None)
    code = getattr(original, 'pgcode', None)
    if code is None and original is not None and getattr(original, 'args', None):
        code = original.args[0]
    if code in _LOCK_CONFLICT_CODES:
        return True
    text = str(original or error).lower()
    return any(marker in text for marker in _LOCK_CONFLICT_MARKERS)


def in_transaction():
    return bool(db.session.info.get(_ACTIVE))


def run_in_transaction(operation, *args, **kwargs):
    """Run ``operation`` in its own transaction and commit it."""
    max_attempts = 1 + current_app.config.get('DEADLOCK_RETRIES', 3)
    backoff = current_app.config.get('DEADLOCK_BACKOFF_SECONDS', 0.05)
    attempt = 0

    while True:
        attempt += 1
        db.session.info[_ACTIVE] = True
        try:
            result = operation(*args, **kwargs)
            db.session.commit()
            return result
        except WorkshopError:
            db.session.rollback()
            raise
        except SQLAlchemyError as exc:
            db.session.rollback()
            if is_lock_conflict(exc) and attempt < max_attempts:
                logger.warning(
                    "Lock conflict in %s (attempt %d/%d), retrying: %s",
                    operation.__name__, attempt, max_attempts, exc,
                )
                time.sleep(backoff * attempt)
                continue
            logger.exception("Database error in %s", operation.__name__)
            raise PersistenceError() from exc
        except Exception:
            db.session.rollback()
            raise
        finally:
            db.session.info.pop(_ACTIVE, None)


def transactional(func):
    """Make ``func`` atomic, joining an enclosing transaction if there is one."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        if in_transaction():
            return func(*args, **kwargs)
        return run_in_transaction(func, *args, **kwargs)

    return wrapper
