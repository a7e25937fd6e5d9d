import pytest

from minitracker.bootstrap import bootstrap
from minitracker.config import Settings, refresh_settings_cache
from minitracker.errors import StorageError
from minitracker.storage.local import LocalStorage

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64 + b"\xff\xd9"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FlakyStorage(LocalStorage):
    """Local storage whose deletes (or writes) can be switched to fail."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_deletes = False
        self.fail_writes = False
        self.delete_calls = []

    def _remove(self, storage_key):
        self.delete_calls.append(storage_key)
        if self.fail_deletes:
            raise StorageError(f"simulated outage deleting {storage_key}")
        super()._remove(storage_key)

    def _write(self, storage_key, data, mime_type):
        if self.fail_writes:
            raise StorageError("simulated outage writing blob")
        super()._write(storage_key, data, mime_type)


class Factory:
    """Builds valid entities with overridable fields."""

    def __init__(self, repos):
        self.repos = repos

    def project(self, **overrides):
        data = {"name": "Stormcast Eternals", "game_system": "age_of_sigmar", "army": "Stormcast"}
        data.update(overrides)
        return self.repos.projects.create(data)

    def miniature(self, project_id, **overrides):
        data = {"project_id": project_id, "name": "Liberator", "miniature_type": "troop"}
        data.update(overrides)
        return self.repos.miniatures.create(data)

    def recipe(self, **overrides):
        data = {
            "name": "Gold Armour",
            "miniature_type": "troop",
            "steps": ["Prime black", "Basecoat Retributor Armour"],
            "paints_used": ["Retributor Armour"],
            "techniques": ["drybrush"],
        }
        data.update(overrides)
        return self.repos.recipes.create(data)

    def photo(self, miniature_id, content=JPEG_BYTES, mime_type="image/jpeg", filename="front.jpg"):
        return self.repos.photos.create(
            {"miniature_id": miniature_id, "filename": filename, "mime_type": mime_type},
            content,
        )


@pytest.fixture(autouse=True)
def _fresh_settings_cache():
    refresh_settings_cache()
    yield
    refresh_settings_cache()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'tracker.db'}",
        local_storage_path=str(tmp_path / "photos"),
        local_storage_base_url="http://testserver/uploads",
        storage_timeout=None,
    )


@pytest.fixture
def services(settings):
    svc = bootstrap(settings)
    yield svc
    svc.close()


@pytest.fixture
def repos(services):
    return services.repositories


@pytest.fixture
def storage(services):
    return services.storage


@pytest.fixture
def make(repos):
    return Factory(repos)


@pytest.fixture
def flaky_storage(settings):
    return FlakyStorage(settings.local_storage_path, base_url=settings.local_storage_base_url)


@pytest.fixture
def flaky_services(settings, flaky_storage):
    svc = bootstrap(settings, storage=flaky_storage)
    yield svc
    svc.close()
