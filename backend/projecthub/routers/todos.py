"""
Todos router — the caller's personal queue.

GET  /todos            — filtered list (state, project_id, author_id, type, action_id)
GET  /todos/count      — pending / done counts
GET  /todos/filters    — option lists for the filter bar
POST /todos/{id}/done  — mark one todo done
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.auth.dependencies import Auth
from projecthub.core.database import get_db_session
from projecthub.models.todo import Todo
from projecthub.schemas.project import UserOut
from projecthub.schemas.todo import TodoCounts, TodoFilterOptions, TodoOut, TodoProjectOut
from projecthub.services import todos as todo_service

router = APIRouter(tags=["Todos"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


def _todo_out(todo: Todo) -> TodoOut:
    return TodoOut(
        id=todo.id,
        state=todo.state,
        action=todo.action,
        action_name=todo_service.action_name(todo),
        target_type=todo.target_type,
        target_id=todo.target_id,
        target_title=todo.target_title,
        target_reference=todo_service.target_reference(todo),
        target_path=todo_service.target_path(todo),
        author=UserOut.model_validate(todo.author),
        project=TodoProjectOut.model_validate(todo.project),
        created_at=todo.created_at,
    )


@router.get(
    "",
    response_model=list[TodoOut],
    summary="List the caller's todos",
)
async def list_todos(
    session: DbSession,
    auth: Auth,
    state: str | None = Query(default=None, examples=["pending", "done"]),
    project_id: int | None = Query(default=None),
    author_id: int | None = Query(default=None),
    type: str | None = Query(default=None, examples=["Issue", "MergeRequest"]),
    action_id: int | None = Query(default=None),
) -> list[TodoOut]:
    filters = todo_service.TodoFilters(
        state=state,
        project_id=project_id,
        author_id=author_id,
        type=type,
        action_id=action_id,
    )
    todos = await todo_service.list_todos(session, auth.user, filters)
    return [_todo_out(todo) for todo in todos]


@router.get(
    "/count",
    response_model=TodoCounts,
    summary="Pending and done counts",
)
async def count_todos(session: DbSession, auth: Auth) -> TodoCounts:
    counts = await todo_service.count_todos(session, auth.user)
    return TodoCounts(**counts)


@router.get(
    "/filters",
    response_model=TodoFilterOptions,
    summary="Filter options for the todo list",
)
async def filter_options(session: DbSession, auth: Auth) -> TodoFilterOptions:
    projects = await todo_service.project_options(session, auth.user)
    return TodoFilterOptions.model_validate(
        {
            "actions": todo_service.action_options(),
            "projects": projects,
            "types": todo_service.type_options(),
        },
        from_attributes=True,
    )


@router.post(
    "/{todo_id}/done",
    response_model=TodoOut,
    summary="Mark a todo done",
)
async def mark_done(todo_id: int, session: DbSession, auth: Auth) -> TodoOut:
    todo = await todo_service.mark_done(session, auth.user, todo_id)
    return _todo_out(todo)
