"""Database engine and session factory"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from bank_tracker.infrastructure.database.models import Base


def create_session_factory(database_url: str, create_schema: bool = True) -> sessionmaker:
    """Build a session factory for the given database URL"""
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine: Engine = create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        connect_args=connect_args,
    )
    if create_schema:
        Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
