"""
Crash-resilience journal for batch runs.

Every record merged during a run is also written here. A run that dies
before rewriting the store leaves its progress in the journal; the next
run replays it before selecting targets, and clears it once the store
file has been written.
"""

from pathlib import Path
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from .database import Checkpoint, get_session, init_database
from .logger import get_logger
from .schema import LocalityRef, StatRecord

logger = get_logger()


class CheckpointJournal:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        init_database(db_path)
        self.session = get_session(db_path)

    def record(self, ref: LocalityRef, record: StatRecord, tax_id: Optional[str] = None) -> None:
        """Upsert one locality's record and commit immediately."""
        try:
            row = self.session.get(Checkpoint, (ref.region, ref.name))
            if row is None:
                row = Checkpoint(region=ref.region, locality=ref.name)
                self.session.add(row)
            row.tax = record.tax
            row.tax_year = record.tax_year
            row.houses = record.houses
            row.houses_year = record.houses_year
            row.tax_id = tax_id
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Checkpoint write failed", region=ref.region, locality=ref.name, error=str(e))

    def pending(self) -> List[Tuple[str, str, StatRecord]]:
        rows = self.session.query(Checkpoint).order_by(Checkpoint.region, Checkpoint.locality).all()
        return [
            (
                row.region,
                row.locality,
                StatRecord(tax=row.tax, tax_year=row.tax_year, houses=row.houses, houses_year=row.houses_year),
            )
            for row in rows
        ]

    def clear(self) -> int:
        removed = self.session.query(Checkpoint).delete()
        self.session.commit()
        logger.debug("Checkpoint journal cleared", removed=removed, path=str(self.db_path))
        return removed

    def close(self) -> None:
        self.session.close()
