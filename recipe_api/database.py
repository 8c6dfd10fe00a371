"""Database engine, session factory and declarative base"""
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from recipe_api.config import Settings, settings

Base = declarative_base()


def create_db_engine(config: Settings = settings) -> Engine:
    """Create a pooled engine for the configured DATABASE_URL"""
    if config.is_sqlite:
        return create_engine(config.DATABASE_URL, connect_args={"check_same_thread": False})

    return create_engine(
        config.DATABASE_URL,
        pool_size=config.DATABASE_POOL_SIZE,
        max_overflow=config.DATABASE_MAX_OVERFLOW,
        pool_timeout=config.DATABASE_POOL_TIMEOUT,
        pool_recycle=config.DATABASE_POOL_RECYCLE,
        pool_pre_ping=True,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


# Created lazily so that JSON-only deployments never open a connection pool
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def get_session_factory() -> sessionmaker:
    """Return the process-wide session factory, creating the engine on first use."""
    global _engine, _session_factory
    if _session_factory is None:
        _engine = create_db_engine()
        _session_factory = create_session_factory(_engine)
    return _session_factory


def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
