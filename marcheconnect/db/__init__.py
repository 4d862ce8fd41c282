"""Database package - all database-related code."""
from marcheconnect.db.connection import init_db, get_db_session, close_db
from marcheconnect.db.models import Base, ApplicationModel, ApplicationDetails, MarketConfiguration

__all__ = [
    "init_db",
    "get_db_session",
    "close_db",
    "Base",
    "ApplicationModel",
    "ApplicationDetails",
    "MarketConfiguration",
]
