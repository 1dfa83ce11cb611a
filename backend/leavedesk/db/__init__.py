from leavedesk.db.base import Base, IDMixin, TimestampMixin, utcnow, value_enum
from leavedesk.db.session import SessionLocal, engine, get_db

__all__ = [
    "Base",
    "IDMixin",
    "TimestampMixin",
    "utcnow",
    "value_enum",
    "engine",
    "SessionLocal",
    "get_db",
]
