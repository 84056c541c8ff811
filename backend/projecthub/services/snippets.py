"""
Snippet manager — code fragments scoped to a project.

Reading needs project read access. Creating needs
settings.SNIPPET_MIN_ACCESS. Editing or deleting needs authorship or
MASTER. Snippets are looked up within their project only, so an id from
another project is simply not found.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.core.config import settings
from projecthub.core.errors import AccessDeniedError, NotFoundError, ValidationFailedError
from projecthub.models.membership import AccessLevel
from projecthub.models.project import Project
from projecthub.models.snippet import Snippet
from projecthub.models.user import User
from projecthub.services.access import require_access

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SnippetPatch:
    """Partial update — None means "leave as is"."""

    title: str | None = None
    file_name: str | None = None
    content: str | None = None


def _required(field_name: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise ValidationFailedError(f"{field_name} is required")
    return value


async def list_snippets(
    session: AsyncSession,
    user: User,
    project: Project,
) -> list[Snippet]:
    await require_access(session, user, project)
    stmt = (
        select(Snippet)
        .where(Snippet.project_id == project.id)
        .order_by(Snippet.created_at.desc(), Snippet.id.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_snippet(
    session: AsyncSession,
    user: User,
    project: Project,
    snippet_id: int,
) -> Snippet:
    await require_access(session, user, project)
    stmt = select(Snippet).where(
        Snippet.id == snippet_id,
        Snippet.project_id == project.id,
    )
    result = await session.execute(stmt)
    snippet = result.scalar_one_or_none()
    if snippet is None:
        raise NotFoundError(f"Snippet {snippet_id} not found in project {project.id}")
    return snippet


async def get_raw_snippet_content(
    session: AsyncSession,
    user: User,
    project: Project,
    snippet_id: int,
) -> str:
    """The snippet body exactly as stored."""
    snippet = await get_snippet(session, user, project, snippet_id)
    return snippet.content


async def create_snippet(
    session: AsyncSession,
    user: User,
    project: Project,
    title: str | None,
    file_name: str | None,
    content: str | None,
) -> Snippet:
    await require_access(session, user, project, settings.SNIPPET_MIN_ACCESS)

    snippet = Snippet(
        project_id=project.id,
        author=user,
        title=_required("title", title),
        file_name=_required("file_name", file_name),
        content=_required("code", content),
    )
    try:
        session.add(snippet)
        project.touch_activity()
        await session.commit()
        await session.refresh(snippet)
    except Exception:
        await session.rollback()
        logger.exception("Failed to persist snippet for project %s", project.id)
        raise

    logger.info("User %s created snippet %s in project %s", user.id, snippet.id, project.id)
    return snippet


async def _get_editable(
    session: AsyncSession,
    user: User,
    project: Project,
    snippet_id: int,
) -> Snippet:
    snippet = await get_snippet(session, user, project, snippet_id)
    if snippet.author_id != user.id:
        await require_access(session, user, project, AccessLevel.MASTER)
    return snippet


async def update_snippet(
    session: AsyncSession,
    user: User,
    project: Project,
    snippet_id: int,
    patch: SnippetPatch,
) -> Snippet:
    """Apply the non-None fields of `patch`; everything else is kept."""
    snippet = await _get_editable(session, user, project, snippet_id)

    if patch.title is not None:
        snippet.title = _required("title", patch.title)
    if patch.file_name is not None:
        snippet.file_name = _required("file_name", patch.file_name)
    if patch.content is not None:
        snippet.content = _required("code", patch.content)

    try:
        project.touch_activity()
        await session.commit()
        await session.refresh(snippet)
    except Exception:
        await session.rollback()
        logger.exception("Failed to update snippet %s", snippet_id)
        raise

    logger.info("User %s updated snippet %s", user.id, snippet.id)
    return snippet


async def delete_snippet(
    session: AsyncSession,
    user: User,
    project: Project,
    snippet_id: int,
) -> None:
    """Delete a snippet. Deleting it again raises NotFoundError."""
    try:
        snippet = await _get_editable(session, user, project, snippet_id)
    except AccessDeniedError:
        logger.warning("User %s may not delete snippet %s", user.id, snippet_id)
        raise

    try:
        await session.delete(snippet)
        project.touch_activity()
        await session.commit()
    except Exception:
        await session.rollback()
        logger.exception("Failed to delete snippet %s", snippet_id)
        raise

    logger.info("User %s deleted snippet %s", user.id, snippet_id)
