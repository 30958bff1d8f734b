"""
Database Connection and Session Management
Owns the SQLAlchemy engine for the lifetime of the process
"""
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from crm.infrastructure.storage.models import Base

logger = logging.getLogger(__name__)


class Database:
    """
    Explicit database handle.
    
    Created once by the application lifespan and handed to services,
    instead of a module-level engine.
    
    Usage:
        db = Database("sqlite:///./crm.db")
        with db.session() as session:
            contacts = session.query(Contact).all()
    """
    
    def __init__(self, url: str, echo: bool = False):
        engine_kwargs = {"echo": echo}
        if url.startswith("sqlite"):
            # Sessions are used from worker threads via asyncio.to_thread
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url or url == "sqlite://":
                engine_kwargs["poolclass"] = StaticPool
        
        self.url = url
        self.engine = create_engine(url, **engine_kwargs)
        self._session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )
    
    def create_all(self) -> None:
        """Create any missing tables."""
        Base.metadata.create_all(self.engine)
    
    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Session scoped to one unit of work.
        
        Commits on success, rolls back on any exception and re-raises.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
    
    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database ping failed: {e}")
            return False
    
    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()
