"""Tests for project schemas (src/roomify/schemas/project.py)."""

import pytest

from src.roomify.schemas.project import (
    ClearProjectsResponse,
    Project,
    SaveProjectRequest,
    Visibility,
)

pytestmark = pytest.mark.unit


class TestProject:
    def test_accepts_camel_case_and_ignores_unknown_fields(self) -> None:
        project = Project.model_validate(
            {
                "id": "p1",
                "sourceImage": "https://s.puter.site/a.png",
                "sourcePath": "/tmp/a.png",
                "ownerId": "user-alice",
            }
        )

        assert project.source_image == "https://s.puter.site/a.png"
        assert project.owner_id == "user-alice"
        assert not hasattr(project, "source_path")

    def test_numeric_id_becomes_string(self) -> None:
        assert Project.model_validate({"id": 1700000000000}).id == "1700000000000"

    def test_dumps_camel_case(self) -> None:
        project = Project(id="p1", rendered_image="r", is_public=True, shared_by="alice")

        assert project.model_dump(by_alias=True, exclude_none=True) == {
            "id": "p1",
            "renderedImage": "r",
            "isPublic": True,
            "sharedBy": "alice",
        }


class TestSaveProjectRequest:
    @pytest.mark.parametrize(
        ("visibility", "expected"),
        [
            ("public", Visibility.PUBLIC),
            ("private", Visibility.PRIVATE),
            ("friends", Visibility.PRIVATE),
            (None, Visibility.PRIVATE),
        ],
    )
    def test_anything_but_public_is_private(
        self, visibility: str | None, expected: Visibility
    ) -> None:
        request = SaveProjectRequest.model_validate(
            {"project": {"id": "p1"}, "visibility": visibility}
        )
        assert request.visibility is expected

    def test_visibility_defaults_to_private(self) -> None:
        assert SaveProjectRequest.model_validate({}).visibility is Visibility.PRIVATE

    def test_project_may_omit_id(self) -> None:
        request = SaveProjectRequest.model_validate({"project": {"sourceImage": "x"}})
        assert request.project is not None
        assert request.project.id is None


def test_clear_response_uses_camel_case() -> None:
    response = ClearProjectsResponse(cleared=1, cleared_public=2, cleared_users=3)
    assert response.model_dump(by_alias=True) == {
        "cleared": 1,
        "clearedPublic": 2,
        "clearedUsers": 3,
    }
