from datetime import datetime
from pathlib import Path
from typing import Optional
from sqlalchemy import create_engine, Column, Integer, BigInteger, DateTime
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from moviequiz.config import database_url

Base = declarative_base()

engine = create_engine(database_url, echo=False)
SessionLocal = sessionmaker(bind=engine)


class GameResult(Base):
    """One finished quiz round of a player."""

    __tablename__ = "game_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    player_id = Column(BigInteger, nullable=False, index=True)  # Telegram chat ID
    correct = Column(Integer, nullable=False)
    total = Column(Integer, nullable=False)
    played_at = Column(DateTime, nullable=False, default=datetime.now)


def init_db(url: Optional[str] = None) -> None:
    """Initialize the database and create tables.

    Passing a URL rebinds the module engine, e.g. to a temporary database.
    """
    global engine
    if url is not None:
        engine = create_engine(url, echo=False)
        SessionLocal.configure(bind=engine)
    if engine.url.drivername.startswith("sqlite") and engine.url.database:
        Path(engine.url.database).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(engine)


def get_session() -> Session:
    """Get a database session."""
    return SessionLocal()
