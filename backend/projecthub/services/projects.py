"""
Project resource service.

Owns project CRUD and the repository-backed sub-resources. Every public
function takes the acting user explicitly and checks access before
touching data; unauthorized reads surface as NotFoundError.

Repository reads go through RepositoryStore in the threadpool because
dulwich does blocking file I/O.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.core.errors import NotFoundError, ValidationFailedError
from projecthub.models.membership import AccessLevel, Membership
from projecthub.models.project import Project
from projecthub.models.user import User
from projecthub.services.access import require_access
from projecthub.services.repository_store import RepositoryRef, RepositoryStore

logger = logging.getLogger(__name__)

# URL-safe handle: letters, digits, "_", "-", "."; must start with a letter,
# digit, or underscore.
_HANDLE_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")
_SLUG_STRIP_RE = re.compile(r"[^a-z0-9_.-]+")


@dataclass(slots=True)
class ProjectAttrs:
    """Attributes accepted by create_project. Only `name` is required."""

    name: str | None = None
    code: str | None = None
    path: str | None = None
    description: str | None = None
    default_branch: str | None = None
    issues_enabled: bool | None = None
    wall_enabled: bool | None = None
    merge_requests_enabled: bool | None = None
    wiki_enabled: bool | None = None


def slugify(name: str) -> str:
    """Derive a URL-safe handle from a display name."""
    slug = _SLUG_STRIP_RE.sub("-", name.strip().lower()).strip("-.")
    return slug


def _validate_handle(field_name: str, value: str) -> None:
    if not _HANDLE_RE.match(value):
        raise ValidationFailedError(f"{field_name} {value!r} is not URL-safe")
    if field_name == "code" and value.isdigit():
        raise ValidationFailedError("code must not be purely numeric")


# ── Queries ─────────────────────────────────────────────────
def _accessible_projects_stmt(user: User):
    """SELECT of projects the user owns or is a member of."""
    return (
        select(Project)
        .outerjoin(
            Membership,
            and_(Membership.project_id == Project.id, Membership.user_id == user.id),
        )
        .where(or_(Project.owner_id == user.id, Membership.id.is_not(None)))
    )


async def list_projects(
    session: AsyncSession,
    user: User,
    page: int = 1,
    per_page: int | None = 20,
) -> list[Project]:
    """
    Projects readable by `user`, most recently active first.

    `per_page=None` returns every accessible project in one list.
    """
    stmt = _accessible_projects_stmt(user).order_by(
        Project.last_activity_at.desc(), Project.id.desc(),
    )
    if per_page is not None:
        stmt = stmt.offset((page - 1) * per_page).limit(per_page)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_projects(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(Project))
    return result.scalar_one()


async def _lookup(session: AsyncSession, id_or_code: str) -> Project | None:
    if id_or_code.isdigit():
        result = await session.execute(select(Project).where(Project.id == int(id_or_code)))
        project = result.scalar_one_or_none()
        if project is not None:
            return project

    result = await session.execute(select(Project).where(Project.code == id_or_code))
    return result.scalar_one_or_none()


async def find_project(
    session: AsyncSession,
    user: User,
    id_or_code: str,
    minimum: AccessLevel | int = AccessLevel.GUEST,
) -> Project:
    """
    Resolve a project by numeric id or by code and check access.

    Missing and forbidden projects raise the same NotFoundError family.
    """
    project = await _lookup(session, str(id_or_code))
    if project is None:
        raise NotFoundError(f"Project {id_or_code!r} not found")
    await require_access(session, user, project, minimum)
    return project


# ── Mutations ───────────────────────────────────────────────
async def _handle_taken(session: AsyncSession, column, value: str) -> bool:
    result = await session.execute(select(Project.id).where(column == value))
    return result.first() is not None


async def _derive_handle(session: AsyncSession, column, name: str) -> str:
    """Slug of `name` that is URL-safe, non-numeric and unused."""
    base = slugify(name) or "project"
    if base.isdigit():
        base = f"p-{base}"

    candidate, suffix = base, 2
    while await _handle_taken(session, column, candidate):
        candidate = f"{base}-{suffix}"
        suffix += 1
    return candidate


async def _given_handle(session: AsyncSession, column, field_name: str, value: str) -> str:
    value = value.strip()
    _validate_handle(field_name, value)
    if await _handle_taken(session, column, value):
        raise ValidationFailedError(f"{field_name} {value!r} is already taken")
    return value


async def create_project(
    session: AsyncSession,
    user: User,
    attrs: ProjectAttrs,
) -> Project:
    """
    Create a project owned by `user`.

    Only a missing name fails. An omitted `code` or `path` is derived from
    the name and made unique with a numeric suffix; one the client supplies
    must be URL-safe and unused, otherwise ValidationFailedError is raised
    and nothing is written.
    """
    name = (attrs.name or "").strip()
    if not name:
        raise ValidationFailedError("name is required")

    if attrs.code:
        code = await _given_handle(session, Project.code, "code", attrs.code)
    else:
        code = await _derive_handle(session, Project.code, name)
    if attrs.path:
        path = await _given_handle(session, Project.path, "path", attrs.path)
    else:
        path = await _derive_handle(session, Project.path, name)

    project = Project(
        name=name,
        code=code,
        path=path,
        description=attrs.description,
        owner=user,
    )
    if attrs.default_branch:
        project.default_branch = attrs.default_branch
    for flag in ("issues_enabled", "wall_enabled", "merge_requests_enabled", "wiki_enabled"):
        value = getattr(attrs, flag)
        if value is not None:
            setattr(project, flag, value)

    try:
        session.add(project)
        await session.commit()
        await session.refresh(project)
    except Exception:
        await session.rollback()
        logger.exception("Failed to persist project %r", code)
        raise

    logger.info("User %s created project %s (%s)", user.id, project.id, project.code)
    return project


# ── Repository sub-resources ────────────────────────────────
async def list_branches(
    session: AsyncSession,
    store: RepositoryStore,
    user: User,
    project: Project,
) -> list[RepositoryRef]:
    await require_access(session, user, project)
    return await run_in_threadpool(store.list_branches, project.path)


async def list_tags(
    session: AsyncSession,
    store: RepositoryStore,
    user: User,
    project: Project,
) -> list[RepositoryRef]:
    await require_access(session, user, project)
    return await run_in_threadpool(store.list_tags, project.path)


async def get_branch(
    session: AsyncSession,
    store: RepositoryStore,
    user: User,
    project: Project,
    branch_name: str,
) -> RepositoryRef:
    await require_access(session, user, project)
    return await run_in_threadpool(store.get_branch, project.path, branch_name)


async def get_blob(
    session: AsyncSession,
    store: RepositoryStore,
    user: User,
    project: Project,
    revision: str,
    file_path: str,
) -> bytes:
    """File contents at `revision`. Bad revision and missing file both 404."""
    await require_access(session, user, project)
    return await run_in_threadpool(store.get_blob, project.path, revision, file_path)
