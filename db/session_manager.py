"""
Session management utilities for database operations.

This module provides the transactional scope used by the services so that
every lifecycle write is either committed as a whole or rolled back.
"""

from contextlib import contextmanager
from sqlalchemy.exc import SQLAlchemyError
from db.database import get_session


@contextmanager
def transaction():
    """
    Provide a transactional scope around a series of operations.

    This context manager handles:
    - Automatic commit on success
    - Automatic rollback on exceptions

    The session itself stays registered with the app context so instances
    returned by the services can still be read after the commit; Flask-SQLAlchemy
    removes it on app context teardown.

    Usage:
        with transaction() as session:
            session.add(challenge)
        # Session is committed here

    Raises:
        The original exception if one occurs during the transaction
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise
