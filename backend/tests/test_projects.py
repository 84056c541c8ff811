"""API tests for /projects."""

from sqlalchemy import select

from projecthub.core.config import settings
from projecthub.models.membership import AccessLevel
from projecthub.models.project import Project


class TestListProjects:
    """GET /projects"""

    async def test_requires_authentication(self, client, project):
        response = await client.get("/projects")

        assert response.status_code == 401
        assert response.json() == {"message": "401 Unauthorized"}

    async def test_rejects_unknown_key(self, client, project):
        response = await client.get("/projects", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401

    async def test_rejects_non_bearer_scheme(self, client, project):
        response = await client.get("/projects", headers={"Authorization": "Basic abc"})

        assert response.status_code == 401

    async def test_returns_owned_projects(self, client, headers, user, project):
        response = await client.get("/projects", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert isinstance(body, list)
        assert body[0]["name"] == project.name
        assert body[0]["owner"]["email"] == user.email

    async def test_includes_projects_shared_through_membership(
        self, client, make_user, project, add_member,
    ):
        member, member_headers = await make_user()
        await add_member(member, project, AccessLevel.GUEST)

        response = await client.get("/projects", headers=member_headers)

        assert [p["id"] for p in response.json()] == [project.id]

    async def test_hides_other_users_projects(self, client, make_user, project):
        _stranger, stranger_headers = await make_user()

        response = await client.get("/projects", headers=stranger_headers)

        assert response.status_code == 200
        assert response.json() == []

    async def test_orders_by_recent_activity(self, client, headers, project):
        newer = await client.post("/projects", headers=headers, json={"name": "newer"})
        assert newer.status_code == 201

        listed = await client.get("/projects", headers=headers)
        assert [p["code"] for p in listed.json()] == ["newer", project.code]

        # Activity on the older project moves it back to the top.
        await client.post(
            f"/projects/{project.code}/snippets",
            headers=headers,
            json={"title": "t", "file_name": "t.py", "code": "x = 1"},
        )
        listed = await client.get("/projects", headers=headers)
        assert [p["code"] for p in listed.json()] == [project.code, "newer"]

    async def test_paginates(self, client, headers, project):
        for name in ("one", "two"):
            await client.post("/projects", headers=headers, json={"name": name})

        first = await client.get("/projects", headers=headers, params={"per_page": 2})
        second = await client.get("/projects", headers=headers, params={"per_page": 2, "page": 2})

        assert len(first.json()) == 2
        assert len(second.json()) == 1


class TestCreateProject:
    """POST /projects"""

    async def test_creates_project_without_code_and_path(self, client, headers, count):
        before = await count(Project)

        response = await client.post("/projects", headers=headers, json={"name": "foo"})

        assert response.status_code == 201
        assert await count(Project) == before + 1
        body = response.json()
        assert body["code"] == "foo"
        assert body["path"] == "foo"
        assert body["default_branch"] == "master"

    async def test_owner_is_the_caller(self, client, headers, user):
        response = await client.post("/projects", headers=headers, json={"name": "foo"})

        assert response.json()["owner"]["email"] == user.email

    async def test_missing_name_does_not_create(self, client, headers, count):
        before = await count(Project)

        response = await client.post("/projects", headers=headers, json={})

        assert response.status_code == 404
        assert response.json() == {"message": "404 Not found"}
        assert await count(Project) == before

    async def test_blank_name_does_not_create(self, client, headers, count):
        before = await count(Project)

        response = await client.post("/projects", headers=headers, json={"name": "   "})

        assert response.status_code == 404
        assert await count(Project) == before

    async def test_request_without_body_does_not_create(self, client, headers, count):
        before = await count(Project)

        response = await client.post("/projects", headers=headers)

        assert response.status_code == 404
        assert response.json() == {"message": "404 Not found"}
        assert await count(Project) == before

    async def test_numeric_name_gets_prefixed_handles(self, client, headers):
        response = await client.post("/projects", headers=headers, json={"name": "2024"})

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "2024"
        assert body["code"] == "p-2024"
        assert body["path"] == "p-2024"

    async def test_non_ascii_name_gets_generic_handles(self, client, headers):
        response = await client.post("/projects", headers=headers, json={"name": "项目"})

        assert response.status_code == 201
        assert response.json()["code"] == "project"

    async def test_derived_handles_are_made_unique(self, client, headers, count):
        first = await client.post("/projects", headers=headers, json={"name": "foo"})
        second = await client.post("/projects", headers=headers, json={"name": "Foo"})

        assert first.status_code == second.status_code == 201
        assert second.json()["code"] == "foo-2"
        assert second.json()["path"] == "foo-2"
        assert await count(Project, Project.name.in_(["foo", "Foo"])) == 2

    async def test_assigns_attributes(self, client, headers):
        attrs = {
            "name": "Sample",
            "path": "path",
            "code": "code",
            "description": "A sentence about the project.",
            "default_branch": "stable",
            "issues_enabled": False,
            "wall_enabled": False,
            "merge_requests_enabled": False,
            "wiki_enabled": False,
        }

        response = await client.post("/projects", headers=headers, json=attrs)

        assert response.status_code == 201
        body = response.json()
        for key, value in attrs.items():
            assert body[key] == value

    async def test_rejects_duplicate_code(self, client, headers, project, count):
        before = await count(Project)

        response = await client.post(
            "/projects", headers=headers, json={"name": "x", "code": project.code},
        )

        assert response.status_code == 404
        assert await count(Project) == before

    async def test_rejects_numeric_code(self, client, headers):
        response = await client.post(
            "/projects", headers=headers, json={"name": "x", "code": "42"},
        )

        assert response.status_code == 404

    async def test_rejects_unsafe_path(self, client, headers):
        response = await client.post(
            "/projects", headers=headers, json={"name": "x", "path": "../etc"},
        )

        assert response.status_code == 404

    async def test_validation_status_is_configurable(self, client, headers, monkeypatch):
        monkeypatch.setattr(settings, "VALIDATION_ERROR_STATUS", 422)

        response = await client.post("/projects", headers=headers, json={})

        assert response.status_code == 422
        assert response.json() == {"message": "name is required"}

    async def test_requires_authentication(self, client, count):
        before = await count(Project)

        response = await client.post("/projects", json={"name": "foo"})

        assert response.status_code == 401
        assert await count(Project) == before


class TestGetProject:
    """GET /projects/{id}"""

    async def test_by_id(self, client, headers, user, project):
        response = await client.get(f"/projects/{project.id}", headers=headers)

        assert response.status_code == 200
        assert response.json()["name"] == project.name
        assert response.json()["owner"]["email"] == user.email

    async def test_by_code(self, client, headers, project):
        response = await client.get(f"/projects/{project.code}", headers=headers)

        assert response.status_code == 200
        assert response.json()["name"] == project.name

    async def test_unknown_is_404(self, client, headers, project):
        response = await client.get("/projects/42", headers=headers)

        assert response.status_code == 404
        assert response.json()["message"] == "404 Not found"

    async def test_forbidden_looks_like_missing(self, client, make_user, project):
        _stranger, stranger_headers = await make_user()

        forbidden = await client.get(f"/projects/{project.id}", headers=stranger_headers)
        missing = await client.get("/projects/4242", headers=stranger_headers)

        assert forbidden.status_code == missing.status_code == 404
        assert forbidden.json() == missing.json()

    async def test_guest_member_can_read(self, client, make_user, project, add_member):
        guest, guest_headers = await make_user()
        await add_member(guest, project, AccessLevel.GUEST)

        response = await client.get(f"/projects/{project.code}", headers=guest_headers)

        assert response.status_code == 200

    async def test_created_project_is_readable(self, client, headers, scalar):
        created = await client.post("/projects", headers=headers, json={"name": "readable"})
        project_id = created.json()["id"]

        response = await client.get(f"/projects/{project_id}", headers=headers)

        assert response.status_code == 200
        assert await scalar(select(Project.code).where(Project.id == project_id)) == "readable"
