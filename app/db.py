from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool
from os import getenv
from typing import Generator

from dotenv import load_dotenv

load_dotenv()


class Base(DeclarativeBase):
    pass


def build_engine(database_url: str) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads."""
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if ":memory:" in database_url:
            return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(database_url, connect_args=connect_args)
    return create_engine(database_url)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


DATABASE_URL = getenv("DATABASE_URL", "sqlite:///./bhap.db")
engine = build_engine(DATABASE_URL)
SessionLocal = build_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding one DB session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
