"""
Todo service — a user's personal queue of things to look at.

Besides listing and counting, this module builds everything a client needs
to render the queue and its filter bar:

  • action_name()      — human phrase for a todo's action
  • target_reference() — "#12", "!7", or a short sha
  • target_path()      — link to the target, with a note anchor if any
  • filter_path()      — /todos?… URL for the current filters, minus some keys
  • *_options()        — option lists for each filter dimension, built as
                         explicit FilterOption structs
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, fields
from urllib.parse import urlencode

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.core.errors import NotFoundError, ValidationFailedError
from projecthub.models import todo as todo_model
from projecthub.models.project import Project
from projecthub.models.todo import Todo
from projecthub.models.user import User
from projecthub.services.access import require_access
from projecthub.services.projects import list_projects

logger = logging.getLogger(__name__)

TODOS_PATH = "/todos"

_ACTION_NAMES = {
    todo_model.ASSIGNED: "assigned you",
    todo_model.MENTIONED: "mentioned you on",
    todo_model.BUILD_FAILED: "The build failed for your",
}

_TARGET_SEGMENTS = {
    todo_model.TARGET_ISSUE: "issues",
    todo_model.TARGET_MERGE_REQUEST: "merge_requests",
}


# ── Filter structs ──────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class FilterOption:
    """One entry of a filter drop-down. An empty id means "any"."""

    id: str
    title: str


@dataclass(slots=True)
class TodoFilters:
    """The query parameters understood by GET /todos."""

    state: str | None = None
    project_id: int | None = None
    author_id: int | None = None
    type: str | None = None
    action_id: int | None = None

    def as_params(self) -> dict[str, str]:
        return {
            f.name: str(getattr(self, f.name))
            for f in fields(self)
            if getattr(self, f.name) not in (None, "")
        }


def action_options() -> list[FilterOption]:
    return [
        FilterOption(id="", title="Any Action"),
        FilterOption(id=str(todo_model.ASSIGNED), title="Assigned"),
        FilterOption(id=str(todo_model.MENTIONED), title="Mentioned"),
    ]


def type_options() -> list[FilterOption]:
    return [
        FilterOption(id="", title="Any Type"),
        FilterOption(id=todo_model.TARGET_ISSUE, title="Issue"),
        FilterOption(id=todo_model.TARGET_MERGE_REQUEST, title="Merge Request"),
    ]


async def project_options(session: AsyncSession, user: User) -> list[FilterOption]:
    """"Any Project" followed by the user's projects, most active first."""
    projects = await list_projects(session, user, per_page=None)
    options = [FilterOption(id="", title="Any Project")]
    options.extend(
        FilterOption(id=str(project.id), title=f"{project.owner.username} / {project.name}")
        for project in projects
    )
    return options


# ── Rendering helpers ───────────────────────────────────────
def action_name(todo: Todo) -> str:
    return _ACTION_NAMES.get(todo.action, "")


def target_reference(todo: Todo) -> str:
    if todo.for_commit():
        return todo.target_id[:8]
    if todo.target_type == todo_model.TARGET_MERGE_REQUEST:
        return f"!{todo.target_id}"
    return f"#{todo.target_id}"


def target_path(todo: Todo) -> str:
    """Path of the todo's target inside its project."""
    base = f"/{todo.project.path}"
    if todo.for_commit():
        path = f"{base}/commit/{todo.target_id}"
    else:
        path = f"{base}/{_TARGET_SEGMENTS[todo.target_type]}/{todo.target_id}"
        if todo.build_failed():
            path = f"{path}/builds"

    if todo.note_id is not None:
        path = f"{path}#note_{todo.note_id}"
    return path


def filter_path(
    current: TodoFilters,
    overrides: dict[str, str | int] | None = None,
    without: Iterable[str] = (),
) -> str:
    """
    URL of the todo list with `overrides` merged into `current` and the
    keys in `without` dropped.
    """
    params: dict[str, str] = current.as_params()
    for key, value in (overrides or {}).items():
        params[key] = str(value)
    for key in without:
        params.pop(key, None)

    if not params:
        return TODOS_PATH
    return f"{TODOS_PATH}?{urlencode(sorted(params.items()))}"


# ── Queries ─────────────────────────────────────────────────
async def list_todos(
    session: AsyncSession,
    user: User,
    filters: TodoFilters,
) -> list[Todo]:
    """The user's todos, newest first. `state` defaults to pending."""
    state = filters.state or todo_model.STATE_PENDING
    if state not in (todo_model.STATE_PENDING, todo_model.STATE_DONE):
        raise ValidationFailedError(f"Unknown todo state {state!r}")

    stmt = select(Todo).where(Todo.user_id == user.id, Todo.state == state)
    if filters.project_id is not None:
        stmt = stmt.where(Todo.project_id == filters.project_id)
    if filters.author_id is not None:
        stmt = stmt.where(Todo.author_id == filters.author_id)
    if filters.type:
        stmt = stmt.where(Todo.target_type == filters.type)
    if filters.action_id is not None:
        stmt = stmt.where(Todo.action == filters.action_id)

    result = await session.execute(stmt.order_by(Todo.created_at.desc(), Todo.id.desc()))
    return list(result.scalars().all())


async def count_todos(session: AsyncSession, user: User) -> dict[str, int]:
    """Pending and done counts for the user."""
    stmt = (
        select(Todo.state, func.count())
        .where(Todo.user_id == user.id)
        .group_by(Todo.state)
    )
    result = await session.execute(stmt)
    counts = {todo_model.STATE_PENDING: 0, todo_model.STATE_DONE: 0}
    for state, count in result.all():
        counts[state] = count
    return counts


# ── Mutations ───────────────────────────────────────────────
async def create_todo(
    session: AsyncSession,
    *,
    recipient: User,
    author: User,
    project: Project,
    target_type: str,
    target_id: str,
    action: int,
    target_title: str = "",
    note_id: int | None = None,
) -> Todo:
    """Queue a todo for `recipient`, who must be able to read `project`."""
    if target_type not in (
        todo_model.TARGET_ISSUE,
        todo_model.TARGET_MERGE_REQUEST,
        todo_model.TARGET_COMMIT,
    ):
        raise ValidationFailedError(f"Unknown target type {target_type!r}")
    if action not in _ACTION_NAMES:
        raise ValidationFailedError(f"Unknown todo action {action!r}")

    await require_access(session, recipient, project)

    todo = Todo(
        user_id=recipient.id,
        author=author,
        project=project,
        target_type=target_type,
        target_id=target_id,
        target_title=target_title,
        note_id=note_id,
        action=action,
    )
    try:
        session.add(todo)
        await session.commit()
        await session.refresh(todo)
    except Exception:
        await session.rollback()
        logger.exception("Failed to queue todo for user %s", recipient.id)
        raise
    return todo


async def mark_done(session: AsyncSession, user: User, todo_id: int) -> Todo:
    """Mark one of the user's own todos as done."""
    result = await session.execute(
        select(Todo).where(Todo.id == todo_id, Todo.user_id == user.id)
    )
    todo = result.scalar_one_or_none()
    if todo is None:
        raise NotFoundError(f"Todo {todo_id} not found")

    todo.state = todo_model.STATE_DONE
    try:
        await session.commit()
    except Exception:
        await session.rollback()
        logger.exception("Failed to mark todo %s done", todo_id)
        raise
    return todo
