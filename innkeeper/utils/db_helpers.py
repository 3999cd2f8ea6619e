"""
Database Helper Utilities for Concurrency Control

Provides:
- Database dialect detection (PostgreSQL vs SQLite)
- Row-level locking that degrades to a no-op on SQLite
"""

import logging
from typing import Optional, TypeVar, Type
from sqlalchemy.orm import Session
from sqlalchemy.exc import OperationalError

from ..exceptions import NotFound, ResourceLocked

logger = logging.getLogger(__name__)

T = TypeVar('T')


def is_postgres(db: Session) -> bool:
    """Check if the database is PostgreSQL"""
    try:
        return db.bind.dialect.name == 'postgresql'
    except AttributeError:
        return False


def acquire_row_lock(
    db: Session,
    model: Type[T],
    filter_condition,
    nowait: bool = False
) -> Optional[T]:
    """
    Acquire a row-level lock on a database record.

    Args:
        db: Database session
        model: SQLAlchemy model class
        filter_condition: Filter to find the row
        nowait: If True, raise error immediately if lock unavailable (PostgreSQL only)

    Returns:
        The locked model instance, or None if not found

    Raises:
        OperationalError: If nowait=True and row is locked by another transaction

    Example:
        room = acquire_row_lock(db, Room, Room.id == room_id, nowait=True)
    """
    query = db.query(model).filter(filter_condition)

    # Only apply locking on PostgreSQL; SQLite serialises writers itself
    if is_postgres(db):
        query = query.with_for_update(nowait=nowait)

    return query.first()


def acquire_row_lock_or_fail(
    db: Session,
    model: Type[T],
    filter_condition,
    entity_id
) -> T:
    """
    Acquire a row-level lock or raise a domain error.

    Uses nowait=True to fail fast if the row is locked.

    Raises:
        NotFound: If row not found
        ResourceLocked: If row is locked by another transaction
    """
    try:
        result = acquire_row_lock(db, model, filter_condition, nowait=True)
    except OperationalError as e:
        if "lock" in str(e).lower():
            logger.warning(f"Lock contention on {model.__name__} {entity_id}: {e}")
            raise ResourceLocked(model.__name__, entity_id) from e
        raise

    if result is None:
        raise NotFound(model.__name__, entity_id)

    return result
