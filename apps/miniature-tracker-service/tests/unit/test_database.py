from unittest.mock import patch

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.pool import StaticPool

from minitracker.config import Settings
from minitracker.db.database import Database, engine_options, is_memory_sqlite, mask_url
from minitracker.errors import ConflictError, NotFoundError, RelationalError


class TestEngineOptions:
    def test_memory_sqlite_uses_static_pool(self):
        options = engine_options(Settings(database_url="sqlite:///:memory:"))
        assert options["poolclass"] is StaticPool
        assert options["connect_args"]["check_same_thread"] is False
        assert "pool_size" not in options

    def test_file_sqlite_is_bounded(self, tmp_path):
        options = engine_options(Settings(database_url=f"sqlite:///{tmp_path / 'x.db'}", db_pool_size=4))
        assert options["pool_size"] == 4
        assert options["pool_timeout"] == 3.0
        assert options["connect_args"]["timeout"] == 3.0

    def test_postgres_pool_settings(self):
        settings = Settings(
            database_url="postgresql://u:p@db:5432/tracker",
            db_pool_size=10,
            db_max_overflow=5,
            db_acquire_timeout=2.5,
            db_pool_recycle=1800,
        )
        options = engine_options(settings)
        assert options["pool_size"] == 10
        assert options["max_overflow"] == 5
        assert options["pool_timeout"] == 2.5
        assert options["pool_recycle"] == 1800
        assert options["pool_pre_ping"] is True
        assert options["connect_args"] == {"connect_timeout": 3}


def test_memory_detection():
    assert is_memory_sqlite("sqlite://") is True
    assert is_memory_sqlite("sqlite:///:memory:") is True
    assert is_memory_sqlite("sqlite:///./tracker.db") is False
    assert is_memory_sqlite("postgresql://u:p@h/db") is False


def test_mask_url_hides_password():
    masked = mask_url("postgresql://painter:hunter2@db:5432/tracker")
    assert "hunter2" not in masked
    assert "painter" in masked


@pytest.fixture
def memory_db():
    db = Database.from_settings(Settings(database_url="sqlite:///:memory:"))
    with db.engine.begin() as conn:
        conn.execute(text("CREATE TABLE parent (id INTEGER PRIMARY KEY)"))
        conn.execute(text("CREATE TABLE child (id INTEGER PRIMARY KEY, parent_id INTEGER NOT NULL REFERENCES parent(id))"))
    yield db
    db.dispose()


class TestSessions:
    def test_commit_on_success(self, memory_db):
        with memory_db.session() as db:
            db.execute(text("INSERT INTO parent (id) VALUES (1)"))
        with memory_db.session() as db:
            assert db.execute(text("SELECT COUNT(*) FROM parent")).scalar() == 1

    def test_rollback_and_passthrough_of_tracker_errors(self, memory_db):
        with pytest.raises(NotFoundError):
            with memory_db.session() as db:
                db.execute(text("INSERT INTO parent (id) VALUES (2)"))
                raise NotFoundError("Parent", 99)
        with memory_db.session() as db:
            assert db.execute(text("SELECT COUNT(*) FROM parent")).scalar() == 0

    def test_foreign_keys_enforced_and_mapped_to_conflict(self, memory_db):
        with pytest.raises(ConflictError):
            with memory_db.session() as db:
                db.execute(text("INSERT INTO child (id, parent_id) VALUES (1, 42)"))

    def test_operational_errors_become_relational_errors(self, memory_db):
        with pytest.raises(RelationalError) as exc:
            with memory_db.session() as db:
                db.execute(text("SELECT * FROM missing_table"))
        assert exc.value.retryable is True

    def test_pool_timeout_is_retryable(self, memory_db):
        with pytest.raises(RelationalError, match="acquiring"):
            with memory_db.session():
                raise PoolTimeoutError("QueuePool limit reached")

    def test_integrity_error_translation(self, memory_db):
        with pytest.raises(ConflictError):
            with memory_db.session():
                raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))


def test_health_check(memory_db):
    assert memory_db.health_check() is True


def test_health_check_failure_is_relational_error(memory_db):
    with patch.object(memory_db.engine, "connect", side_effect=OperationalError("SELECT 1", {}, Exception("down"))):
        with pytest.raises(RelationalError):
            memory_db.health_check()
