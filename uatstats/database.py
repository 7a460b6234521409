"""
Checkpoint journal schema and connection management.

Uses SQLite with SQLAlchemy. Each row is one locality merged during a run
that has not yet reached the store file.
"""

from datetime import datetime
from pathlib import Path
from sqlalchemy import create_engine, Column, Float, Integer, String, DateTime
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class Checkpoint(Base):
    """Journaled StatRecord for one locality."""

    __tablename__ = "checkpoints"

    region = Column(String, primary_key=True)
    locality = Column(String, primary_key=True)
    tax = Column(Float, nullable=False, default=0.0)
    tax_year = Column(Integer, nullable=True)
    houses = Column(Integer, nullable=False, default=0)
    houses_year = Column(Integer, nullable=True)
    tax_id = Column(String, nullable=True)  # cui of the matched entity
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(f"sqlite:///{db_path}")
    Session = sessionmaker(bind=engine)
    return Session()
