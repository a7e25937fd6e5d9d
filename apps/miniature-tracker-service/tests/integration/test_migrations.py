import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError

from minitracker.config import Settings
from minitracker.db.database import Database
from minitracker.db.migrate import current_version, head_version, is_up_to_date, upgrade_to_head

pytestmark = pytest.mark.integration


@pytest.fixture
def fresh_db(tmp_path):
    db = Database.from_settings(Settings(database_url=f"sqlite:///{tmp_path / 'nested' / 'fresh.db'}"))
    yield db
    db.dispose()


def test_empty_database_migrates_to_head(fresh_db):
    assert current_version(fresh_db) is None
    assert upgrade_to_head(fresh_db) == head_version() == "0002"
    tables = set(inspect(fresh_db.engine).get_table_names())
    assert {"projects", "miniatures", "painting_recipes", "photos", "miniature_recipes", "alembic_version"} <= tables


def test_upgrade_is_idempotent(fresh_db):
    upgrade_to_head(fresh_db)
    assert upgrade_to_head(fresh_db) == "0002"
    assert is_up_to_date(fresh_db) is True
    with fresh_db.engine.connect() as conn:
        assert conn.execute(text("SELECT COUNT(*) FROM alembic_version")).scalar() == 1


def test_partially_migrated_database_catches_up(fresh_db):
    from alembic import command
    from minitracker.db.migrate import make_alembic_config

    with fresh_db.engine.begin() as connection:
        config = make_alembic_config()
        config.attributes["connection"] = connection
        command.upgrade(config, "0001")
    assert current_version(fresh_db) == "0001"
    assert "miniature_recipes" not in inspect(fresh_db.engine).get_table_names()

    assert upgrade_to_head(fresh_db) == "0002"
    assert "miniature_recipes" in inspect(fresh_db.engine).get_table_names()


def test_indexes_present(fresh_db):
    upgrade_to_head(fresh_db)
    inspector = inspect(fresh_db.engine)
    assert "idx_miniatures_project_id" in {ix["name"] for ix in inspector.get_indexes("miniatures")}
    assert "idx_photos_miniature_id" in {ix["name"] for ix in inspector.get_indexes("photos")}
    assert "idx_recipes_miniature_type" in {ix["name"] for ix in inspector.get_indexes("painting_recipes")}


def test_schema_rejects_unknown_enum_values(fresh_db):
    upgrade_to_head(fresh_db)
    with pytest.raises(IntegrityError):
        with fresh_db.engine.begin() as conn:
            conn.execute(
                text(
                    "INSERT INTO projects (id, name, game_system, army, created_at, updated_at) "
                    "VALUES ('0123456789abcdef0123456789abcdef', 'x', 'AgeOfSigmar', 'y', "
                    "'2024-01-01 00:00:00', '2024-01-01 00:00:00')"
                )
            )


def test_schema_cascades_project_deletes(services):
    """Deleting a project row directly removes its miniatures too."""
    repos = services.repositories
    project = repos.projects.create({"name": "P", "game_system": "warhammer_40k", "army": "Orks"})
    repos.miniatures.create({"project_id": project.id, "name": "Boy", "miniature_type": "troop"})
    with services.database.engine.begin() as conn:
        conn.execute(text("DELETE FROM projects WHERE id = :id"), {"id": project.id.hex})
    assert repos.miniatures.list() == []
