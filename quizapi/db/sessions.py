import logging
from typing import Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from quizapi.db.base import Base

logger = logging.getLogger("quizapi.db.session")


class Database:
    """Process-wide database handle with an explicit connect/close lifecycle."""

    def __init__(self, url: str):
        self.url = url
        self.engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None

    def connect(self) -> None:
        if self.engine is not None:
            return
        if not self.url:
            logger.error("DATABASE_URL is not configured. Set the DATABASE_URL env var.")
            raise RuntimeError("DATABASE_URL is not configured. Set the DATABASE_URL env var.")

        logger.info("Initializing DB engine (checking configuration)")
        kwargs = {"pool_pre_ping": True}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in self.url or self.url in ("sqlite://", "sqlite:///"):
                # one shared connection, otherwise every session sees an empty database
                kwargs["poolclass"] = StaticPool

        self.engine = create_engine(self.url, **kwargs)
        self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

        # Import all models to ensure they're registered with Base
        import quizapi.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database connected (dialect=%s)", self.engine.dialect.name)

    def close(self) -> None:
        if self.engine is None:
            return
        self.engine.dispose()
        self.engine = None
        self._sessionmaker = None
        logger.info("Database connection closed")

    def session(self) -> Session:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not connected; call connect() first")
        return self._sessionmaker()


def get_db(request: Request):
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
