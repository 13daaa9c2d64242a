"""Database package for the Quit service."""

from db.database import db, init_db, get_session
from db.session_manager import transaction

__all__ = ['db', 'init_db', 'get_session', 'transaction']
