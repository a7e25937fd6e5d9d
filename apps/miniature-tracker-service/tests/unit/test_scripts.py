from __future__ import annotations

import runpy
import uuid
from pathlib import Path
from types import SimpleNamespace

from minitracker.db import schemas
from minitracker.errors import StorageError

SCRIPTS_DIR = Path(__file__).resolve().parents[2] / "scripts"
RECONCILE_GLOBALS = runpy.run_path(str(SCRIPTS_DIR / "reconcile_photos.py"))
MIGRATE_GLOBALS = runpy.run_path(str(SCRIPTS_DIR / "migrate_db.py"))


class DummyPhotos:
    def __init__(self, report=None, error=None):
        self.report = report
        self.error = error
        self.calls = []

    def reconcile(self, min_age, dry_run):
        self.calls.append((min_age, dry_run))
        if self.error is not None:
            raise self.error
        return self.report


class DummyServices:
    def __init__(self, photos):
        self.repositories = SimpleNamespace(photos=photos)
        self.closed = False

    def close(self):
        self.closed = True


def _patch(module_globals, **overrides):
    for key, value in overrides.items():
        module_globals[key] = value


def test_reconcile_dry_run(capsys):
    photos = DummyPhotos(schemas.ReconcileReport(dry_run=True, orphaned_blobs=["a.jpg", "b.jpg"]))
    services = DummyServices(photos)
    _patch(RECONCILE_GLOBALS["reconcile"].__globals__, bootstrap=lambda migrate: services)

    exit_code = RECONCILE_GLOBALS["main"](["--dry-run", "--min-age-minutes", "5"])

    assert exit_code == 0
    assert services.closed is True
    min_age, dry_run = photos.calls[0]
    assert dry_run is True
    assert min_age.total_seconds() == 300
    assert "2 orphaned blobs would be deleted" in capsys.readouterr().out


def test_reconcile_reports_dangling_rows_and_failures(capsys):
    dangling = uuid.uuid4()
    report = schemas.ReconcileReport(
        orphaned_blobs=["a.jpg", "b.jpg"],
        deleted_blobs=["a.jpg"],
        dangling_photo_ids=[dangling],
        failures=[schemas.BlobWarning(storage_key="b.jpg", message="denied")],
    )
    services = DummyServices(DummyPhotos(report))
    _patch(RECONCILE_GLOBALS["reconcile"].__globals__, bootstrap=lambda migrate: services)

    exit_code = RECONCILE_GLOBALS["main"]([])

    assert exit_code == 1
    captured = capsys.readouterr()
    assert "Deleted 1 of 2 orphaned blobs." in captured.out
    assert str(dangling) in captured.out
    assert "Could not delete b.jpg" in captured.err


def test_reconcile_storage_outage(capsys):
    services = DummyServices(DummyPhotos(error=StorageError("bucket unreachable")))
    _patch(RECONCILE_GLOBALS["reconcile"].__globals__, bootstrap=lambda migrate: services)

    assert RECONCILE_GLOBALS["main"]([]) == 1
    assert services.closed is True
    assert "bucket unreachable" in capsys.readouterr().err


def test_migrate_script_upgrades_then_checks(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    refresh = MIGRATE_GLOBALS["get_settings"].cache_clear
    refresh()

    assert MIGRATE_GLOBALS["main"](["--check"]) == 1
    assert "current=<empty> head=0002" in capsys.readouterr().out

    assert MIGRATE_GLOBALS["main"]([]) == 0
    assert "version 0002" in capsys.readouterr().out

    assert MIGRATE_GLOBALS["main"](["--check"]) == 0
    refresh()
