"""
Tests for database.py and checkpoint.py - SQLite checkpoint journal.
"""

import pytest
from datetime import datetime
from sqlalchemy.exc import IntegrityError

from uatstats.checkpoint import CheckpointJournal
from uatstats.database import Checkpoint, init_database, get_session
from uatstats.schema import Kind, LocalityRef, StatRecord


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_database_file(self, tmp_path):
        """Test that init_database creates the database file."""
        db_path = tmp_path / "test.db"
        assert not db_path.exists()

        init_database(db_path)

        assert db_path.exists()

    def test_init_creates_tables(self, tmp_path):
        """Test that init_database creates the checkpoints table."""
        db_path = tmp_path / "test.db"
        init_database(db_path)

        session = get_session(db_path)
        assert session.query(Checkpoint).count() == 0
        session.close()

    def test_init_creates_parent_directories(self, tmp_path):
        """Test that init_database creates parent directories if missing."""
        db_path = tmp_path / "nested" / "dir" / "test.db"
        assert not db_path.parent.exists()

        init_database(db_path)

        assert db_path.exists()


class TestCheckpointModel:
    """Test the Checkpoint table."""

    @pytest.fixture
    def db_session(self, tmp_path):
        """Create a temporary database and return a session."""
        db_path = tmp_path / "test.db"
        init_database(db_path)
        session = get_session(db_path)
        yield session
        session.close()

    def test_defaults(self, db_session):
        """Unset figures default to zero and updated_at is stamped."""
        before = datetime.now()
        db_session.add(Checkpoint(region="Sample", locality="X"))
        db_session.commit()

        row = db_session.query(Checkpoint).filter_by(region="Sample", locality="X").first()
        assert row.tax == 0.0
        assert row.houses == 0
        assert row.tax_year is None
        assert row.updated_at >= before

    def test_duplicate_key_fails(self, db_session):
        """Region + locality is the primary key."""
        db_session.add(Checkpoint(region="Sample", locality="X"))
        db_session.commit()

        db_session.add(Checkpoint(region="Sample", locality="X", tax=5.0))
        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_same_locality_in_two_regions(self, db_session):
        db_session.add(Checkpoint(region="Sample", locality="X"))
        db_session.add(Checkpoint(region="Other", locality="X"))
        db_session.commit()
        assert db_session.query(Checkpoint).count() == 2


class TestCheckpointJournal:
    """Test the journal used by batch runs."""

    @pytest.fixture
    def journal(self, tmp_path):
        journal = CheckpointJournal(tmp_path / "checkpoints.db")
        yield journal
        journal.close()

    def test_record_and_pending(self, journal):
        journal.record(LocalityRef("Sample", "X", Kind.TOWN), StatRecord(12.5, 2024, 0, None), tax_id="111")
        journal.record(LocalityRef("Other", "Y"), StatRecord(0.0, None, 480, 2023))

        assert journal.pending() == [
            ("Other", "Y", StatRecord(0.0, None, 480, 2023)),
            ("Sample", "X", StatRecord(12.5, 2024, 0, None)),
        ]

    def test_record_upserts(self, journal):
        ref = LocalityRef("Sample", "X")
        journal.record(ref, StatRecord())
        journal.record(ref, StatRecord(houses=3, houses_year=2022))

        assert journal.pending() == [("Sample", "X", StatRecord(houses=3, houses_year=2022))]

    def test_clear(self, journal):
        journal.record(LocalityRef("Sample", "X"), StatRecord(tax=1.0))
        journal.record(LocalityRef("Sample", "Y"), StatRecord(tax=2.0))

        assert journal.clear() == 2
        assert journal.pending() == []

    def test_survives_reopen(self, tmp_path):
        """Records committed by one journal are visible to the next run's journal."""
        db = tmp_path / "checkpoints.db"
        first = CheckpointJournal(db)
        first.record(LocalityRef("Sample", "X"), StatRecord(tax=7.0, tax_year=2025))
        first.close()

        second = CheckpointJournal(db)
        assert second.pending() == [("Sample", "X", StatRecord(tax=7.0, tax_year=2025))]
        second.close()
