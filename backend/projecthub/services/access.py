"""
Per-project access checks.

The owner holds OWNER implicitly; everyone else gets the level stored in
their membership row, or nothing. Checks raise AccessDeniedError, which the
API renders exactly like a missing resource.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.core.errors import AccessDeniedError
from projecthub.models.membership import AccessLevel, Membership
from projecthub.models.project import Project
from projecthub.models.user import User


async def access_level_for(
    session: AsyncSession,
    user: User,
    project: Project,
) -> AccessLevel | None:
    """The user's effective level on the project, or None without access."""
    if project.owner_id == user.id:
        return AccessLevel.OWNER

    stmt = select(Membership.project_access).where(
        Membership.project_id == project.id,
        Membership.user_id == user.id,
    )
    result = await session.execute(stmt)
    level = result.scalar_one_or_none()
    return AccessLevel(level) if level is not None else None


async def require_access(
    session: AsyncSession,
    user: User,
    project: Project,
    minimum: AccessLevel | int = AccessLevel.GUEST,
) -> AccessLevel:
    """Return the user's level, or raise if it is below `minimum`."""
    level = await access_level_for(session, user, project)
    if level is None or level < minimum:
        raise AccessDeniedError(
            f"User {user.id} needs access >= {int(minimum)} on project {project.id}"
        )
    return level
