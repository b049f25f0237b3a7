"""Database engine, session factory and declarative base"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from sheetchat.config import settings

connect_args = {"check_same_thread": False} if settings.is_sqlite else {}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a request-scoped session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create tables for all registered models"""
    # Import models so they're registered on Base.metadata
    from sheetchat import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
