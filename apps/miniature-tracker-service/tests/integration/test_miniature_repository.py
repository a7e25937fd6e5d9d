import threading
import uuid

import pytest

from minitracker.errors import ConflictError, NotFoundError, ValidationError
from minitracker.utils.enums import MiniatureType, ProgressStatus

pytestmark = pytest.mark.integration


class TestMiniatureCrud:
    def test_new_miniature_is_unpainted(self, repos, make):
        project = make.project()
        miniature = repos.miniatures.create(
            {"project_id": project.id, "name": "Lord-Celestant", "miniature_type": "character"}
        )
        assert miniature.progress_status is ProgressStatus.unpainted
        assert miniature.progress_percentage == 0
        assert repos.miniatures.get(miniature.id) == miniature

    def test_requires_existing_project(self, repos):
        with pytest.raises(NotFoundError):
            repos.miniatures.create({"project_id": uuid.uuid4(), "name": "Orphan", "miniature_type": "troop"})
        assert repos.miniatures.list() == []

    def test_unknown_type_rejected(self, make):
        project = make.project()
        with pytest.raises(ValidationError) as exc:
            make.miniature(project.id, miniature_type="monster")
        assert exc.value.field == "miniature_type"

    def test_list_filters_and_creation_order(self, repos, make):
        first = make.project()
        second = make.project(name="Other", army="Seraphon", game_system="age_of_sigmar")
        a = make.miniature(first.id, name="A")
        b = make.miniature(first.id, name="B", miniature_type="character")
        c = make.miniature(first.id, name="C", progress_status="primed")
        make.miniature(second.id, name="D")

        assert [m.id for m in repos.miniatures.list(project_id=first.id)] == [a.id, b.id, c.id]
        assert [m.id for m in repos.miniatures.list(project_id=first.id, miniature_type="character")] == [b.id]
        assert [m.id for m in repos.miniatures.list(progress_status=ProgressStatus.primed)] == [c.id]
        assert len(repos.miniatures.list()) == 4

    def test_list_rejects_unknown_filter(self, repos):
        with pytest.raises(ValidationError):
            repos.miniatures.list(progress_status="half-done")


class TestProgressTransitions:
    def test_every_change_strictly_increases_updated_at(self, repos, make):
        miniature = make.miniature(make.project().id)
        stamps = [miniature.updated_at]
        for status in ("primed", "completed", "unpainted", "detailed", "detailed"):
            miniature = repos.miniatures.set_progress(miniature.id, status)
            assert miniature.progress_status is ProgressStatus(status)
            stamps.append(miniature.updated_at)
        assert all(later > earlier for earlier, later in zip(stamps, stamps[1:]))

    def test_backwards_moves_allowed(self, repos, make):
        miniature = make.miniature(make.project().id, progress_status="completed")
        assert repos.miniatures.set_progress(miniature.id, ProgressStatus.primed).progress_status is ProgressStatus.primed

    def test_set_progress_rejects_unknown_value(self, repos, make):
        miniature = make.miniature(make.project().id)
        with pytest.raises(ValidationError):
            repos.miniatures.set_progress(miniature.id, "Painted")
        assert repos.miniatures.get(miniature.id).updated_at == miniature.updated_at

    def test_update_other_fields(self, repos, make):
        miniature = make.miniature(make.project().id)
        updated = repos.miniatures.update(miniature.id, {"notes": "Needs basing", "miniature_type": "character"})
        assert updated.notes == "Needs basing"
        assert updated.miniature_type is MiniatureType.character
        assert updated.project_id == miniature.project_id

    def test_update_cannot_null_name(self, repos, make):
        miniature = make.miniature(make.project().id)
        with pytest.raises(ValidationError):
            repos.miniatures.update(miniature.id, {"name": None})

    def test_concurrent_writers_with_same_version_one_conflicts(self, repos, make):
        miniature = make.miniature(make.project().id)
        barrier = threading.Barrier(2)
        outcomes = []
        lock = threading.Lock()

        def writer(status):
            barrier.wait()
            try:
                repos.miniatures.set_progress(miniature.id, status, expected_updated_at=miniature.updated_at)
                result = "ok"
            except ConflictError:
                result = "conflict"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=writer, args=(s,)) for s in ("primed", "basecoated")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(outcomes) == ["conflict", "ok"]
        assert repos.miniatures.get(miniature.id).progress_status in (ProgressStatus.primed, ProgressStatus.basecoated)
