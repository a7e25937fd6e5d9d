import pytest

from minitracker.errors import ValidationError

pytestmark = pytest.mark.integration

AT_LIMIT = "n" * 1000
OVER_LIMIT = "n" * 1001


class TestProjectDescription:
    def test_create_accepts_limit(self, make):
        assert make.project(description=AT_LIMIT).description == AT_LIMIT

    def test_create_rejects_over_limit(self, repos, make):
        with pytest.raises(ValidationError) as exc:
            make.project(description=OVER_LIMIT)
        assert exc.value.field == "description"
        assert repos.projects.list() == []

    def test_update_rejects_over_limit(self, repos, make):
        project = make.project(description="short")
        assert repos.projects.update(project.id, {"description": AT_LIMIT}).description == AT_LIMIT
        with pytest.raises(ValidationError) as exc:
            repos.projects.update(project.id, {"description": OVER_LIMIT})
        assert exc.value.field == "description"
        assert repos.projects.get(project.id).description == AT_LIMIT


class TestMiniatureNotes:
    def test_create_accepts_limit(self, make):
        assert make.miniature(make.project().id, notes=AT_LIMIT).notes == AT_LIMIT

    def test_create_rejects_over_limit(self, repos, make):
        project = make.project()
        with pytest.raises(ValidationError) as exc:
            make.miniature(project.id, notes=OVER_LIMIT)
        assert exc.value.field == "notes"
        assert repos.miniatures.list(project.id) == []

    def test_update_rejects_over_limit(self, repos, make):
        miniature = make.miniature(make.project().id)
        assert repos.miniatures.update(miniature.id, {"notes": AT_LIMIT}).notes == AT_LIMIT
        with pytest.raises(ValidationError) as exc:
            repos.miniatures.update(miniature.id, {"notes": OVER_LIMIT})
        assert exc.value.field == "notes"
        assert repos.miniatures.get(miniature.id).notes == AT_LIMIT


class TestRecipeNotes:
    def test_create_accepts_limit(self, make):
        assert make.recipe(notes=AT_LIMIT).notes == AT_LIMIT

    def test_create_rejects_over_limit(self, repos, make):
        with pytest.raises(ValidationError) as exc:
            make.recipe(notes=OVER_LIMIT)
        assert exc.value.field == "notes"
        assert repos.recipes.list() == []

    def test_update_rejects_over_limit(self, repos, make):
        recipe = make.recipe()
        assert repos.recipes.update(recipe.id, {"notes": AT_LIMIT}).notes == AT_LIMIT
        with pytest.raises(ValidationError) as exc:
            repos.recipes.update(recipe.id, {"notes": OVER_LIMIT})
        assert exc.value.field == "notes"
        assert repos.recipes.get(recipe.id).notes == AT_LIMIT
