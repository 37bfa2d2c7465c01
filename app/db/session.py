"""
Database session wiring
"""
from sqlalchemy.orm import sessionmaker

from atams.db.session import create_session_factory, get_db_factory
from app.core.config import settings

SessionLocal = create_session_factory(settings)

get_db = get_db_factory(SessionLocal)


def get_session_factory() -> sessionmaker:
    """Factory for work that outlives the request, such as the deletion worker"""
    return SessionLocal
