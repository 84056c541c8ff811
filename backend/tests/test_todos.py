"""Tests for the todo queue: rendering helpers, filters, and /todos."""

import pytest

from projecthub.core.config import settings
from projecthub.core.errors import AccessDeniedError, ValidationFailedError
from projecthub.models import todo as todo_model
from projecthub.models.todo import Todo
from projecthub.services import todos as todo_service
from projecthub.services.projects import ProjectAttrs, create_project
from projecthub.services.todos import TodoFilters


@pytest.fixture
def queue(session, user, project):
    """Create a todo for `user` on `project`."""

    async def _queue(**overrides) -> Todo:
        attrs = {
            "recipient": user,
            "author": user,
            "project": project,
            "target_type": todo_model.TARGET_ISSUE,
            "target_id": "12",
            "target_title": "Fix the login form",
            "action": todo_model.ASSIGNED,
        }
        attrs.update(overrides)
        return await todo_service.create_todo(session, **attrs)

    return _queue


class TestRenderingHelpers:
    async def test_action_names(self, queue):
        assigned = await queue(action=todo_model.ASSIGNED)
        mentioned = await queue(action=todo_model.MENTIONED)
        failed = await queue(action=todo_model.BUILD_FAILED)

        assert todo_service.action_name(assigned) == "assigned you"
        assert todo_service.action_name(mentioned) == "mentioned you on"
        assert todo_service.action_name(failed) == "The build failed for your"

    async def test_target_reference(self, queue):
        issue = await queue()
        merge_request = await queue(target_type=todo_model.TARGET_MERGE_REQUEST, target_id="7")
        commit = await queue(target_type=todo_model.TARGET_COMMIT, target_id="621491c677087aa2")

        assert todo_service.target_reference(issue) == "#12"
        assert todo_service.target_reference(merge_request) == "!7"
        assert todo_service.target_reference(commit) == "621491c6"

    async def test_target_path_for_issue_with_note(self, queue, project):
        todo = await queue(note_id=99)

        assert todo_service.target_path(todo) == f"/{project.path}/issues/12#note_99"

    async def test_target_path_for_commit(self, queue, project):
        todo = await queue(target_type=todo_model.TARGET_COMMIT, target_id="abc123")

        assert todo_service.target_path(todo) == f"/{project.path}/commit/abc123"

    async def test_target_path_for_failed_build(self, queue, project):
        todo = await queue(
            target_type=todo_model.TARGET_MERGE_REQUEST,
            target_id="7",
            action=todo_model.BUILD_FAILED,
        )

        assert todo_service.target_path(todo) == f"/{project.path}/merge_requests/7/builds"


class TestFilterPath:
    def test_no_filters(self):
        assert todo_service.filter_path(TodoFilters()) == "/todos"

    def test_merges_overrides(self):
        current = TodoFilters(state="pending", project_id=3)

        path = todo_service.filter_path(current, {"type": "Issue"})

        assert path == "/todos?project_id=3&state=pending&type=Issue"

    def test_drops_without_keys(self):
        current = TodoFilters(state="done", project_id=3, author_id=5)

        path = todo_service.filter_path(current, without=["project_id", "author_id"])

        assert path == "/todos?state=done"


class TestFilterOptions:
    def test_action_options(self):
        options = todo_service.action_options()

        assert [(o.id, o.title) for o in options] == [
            ("", "Any Action"),
            (str(todo_model.ASSIGNED), "Assigned"),
            (str(todo_model.MENTIONED), "Mentioned"),
        ]

    def test_type_options(self):
        assert [o.id for o in todo_service.type_options()] == ["", "Issue", "MergeRequest"]

    async def test_endpoint(self, client, headers, user, project):
        response = await client.get("/todos/filters", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["projects"] == [
            {"id": "", "title": "Any Project"},
            {"id": str(project.id), "title": f"{user.username} / {project.name}"},
        ]
        assert body["actions"][0] == {"id": "", "title": "Any Action"}
        assert body["types"][-1] == {"id": "MergeRequest", "title": "Merge Request"}

    async def test_project_options_are_not_paged(self, session, user, project):
        for n in range(settings.MAX_PER_PAGE + 5):
            await create_project(session, user, ProjectAttrs(name=f"extra {n}"))

        options = await todo_service.project_options(session, user)

        assert len(options) == settings.MAX_PER_PAGE + 5 + 2
        assert options[0].title == "Any Project"


class TestCreateTodo:
    async def test_recipient_must_see_the_project(self, session, make_user, user, project):
        stranger, _ = await make_user()

        with pytest.raises(AccessDeniedError):
            await todo_service.create_todo(
                session,
                recipient=stranger,
                author=user,
                project=project,
                target_type=todo_model.TARGET_ISSUE,
                target_id="1",
                action=todo_model.ASSIGNED,
            )

    async def test_unknown_target_type(self, queue):
        with pytest.raises(ValidationFailedError):
            await queue(target_type="Epic")


class TestTodosEndpoint:
    async def test_lists_pending_by_default(self, client, headers, queue):
        pending = await queue()

        response = await client.get("/todos", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert [t["id"] for t in body] == [pending.id]
        assert body[0]["action_name"] == "assigned you"
        assert body[0]["target_reference"] == "#12"

    async def test_filters(self, client, headers, queue):
        await queue()
        mention = await queue(action=todo_model.MENTIONED)
        merge_request = await queue(target_type=todo_model.TARGET_MERGE_REQUEST, target_id="3")

        by_action = await client.get(
            "/todos", headers=headers, params={"action_id": todo_model.MENTIONED},
        )
        by_type = await client.get("/todos", headers=headers, params={"type": "MergeRequest"})

        assert [t["id"] for t in by_action.json()] == [mention.id]
        assert [t["id"] for t in by_type.json()] == [merge_request.id]

    async def test_unknown_state(self, client, headers):
        response = await client.get("/todos", headers=headers, params={"state": "archived"})

        assert response.status_code == 404

    async def test_mark_done_updates_counts(self, client, headers, queue):
        first = await queue()
        await queue()

        done = await client.post(f"/todos/{first.id}/done", headers=headers)
        counts = await client.get("/todos/count", headers=headers)

        assert done.status_code == 200
        assert done.json()["state"] == "done"
        assert counts.json() == {"pending": 1, "done": 1}

    async def test_cannot_mark_someone_elses_todo(self, client, make_user, queue):
        todo = await queue()
        _other, other_headers = await make_user()

        response = await client.post(f"/todos/{todo.id}/done", headers=other_headers)

        assert response.status_code == 404

    async def test_requires_authentication(self, client):
        response = await client.get("/todos/count")

        assert response.status_code == 401
