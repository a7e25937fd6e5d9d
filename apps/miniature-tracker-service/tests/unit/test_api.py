import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from minitracker.api.deps import get_repositories
from minitracker.api.errors import status_for
from minitracker.api.main import create_app
from minitracker.errors import (
    BlobNotFoundError,
    ConflictError,
    NotFoundError,
    RelationalError,
    StorageError,
    TrackerError,
    ValidationError,
)


@pytest.fixture
def client(services):
    app = create_app(services)

    @app.get("/_raise/{kind}")
    def _raise(kind: str):
        raise {
            "validation": ValidationError("name", "must not be empty"),
            "missing": NotFoundError("Project", "123"),
            "conflict": ConflictError("stale write"),
            "storage": StorageError("bucket unreachable"),
            "database": RelationalError("pool exhausted"),
        }[kind]

    @app.get("/_projects")
    def _projects(repos=Depends(get_repositories)):
        return [p.model_dump(mode="json") for p in repos.projects.list()]

    with TestClient(app) as test_client:
        yield test_client


def test_health_reports_database_and_schema(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"] == "sqlite"
    assert body["schema_version"] == "0002"
    assert body["schema_current"] is True
    assert body["storage"] == "local"


@pytest.mark.parametrize(
    "kind,status_code,error_type",
    [
        ("validation", 400, "validation_error"),
        ("missing", 404, "not_found"),
        ("conflict", 409, "conflict"),
        ("storage", 503, "storage_error"),
        ("database", 503, "database_error"),
    ],
)
def test_errors_map_to_status_and_envelope(client, kind, status_code, error_type):
    response = client.get(f"/_raise/{kind}")
    assert response.status_code == status_code
    error = response.json()["error"]
    assert error["error_type"] == error_type
    assert error["message"]
    assert "timestamp" in error
    assert error["retryable"] is (status_code == 503)


def test_validation_error_names_field(client):
    error = client.get("/_raise/validation").json()["error"]
    assert error["field"] == "name"


def test_repositories_reachable_through_dependency(client, repos):
    repos.projects.create({"name": "Sons of Horus", "game_system": "horus_heresy", "army": "Legiones Astartes"})
    response = client.get("/_projects")
    assert response.status_code == 200
    assert [p["name"] for p in response.json()] == ["Sons of Horus"]


def test_status_for_specific_classes():
    assert status_for(BlobNotFoundError("k")) == 404
    assert status_for(TrackerError("boom")) == 500
