"""
Membership manager — who may work on a project, and at what level.

Every mutation requires the acting user to hold MASTER or above and
commits as a single transaction.

Policy for adding a user who is already a member (or the owner): the
existing row is left untouched and the user is not counted. Use
update_members to change a role.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.core.errors import NotFoundError, ValidationFailedError
from projecthub.models.membership import AccessLevel, Membership
from projecthub.models.project import Project
from projecthub.models.user import User
from projecthub.services.access import require_access

logger = logging.getLogger(__name__)


def _coerce_level(access_level: int) -> AccessLevel:
    try:
        level = AccessLevel(access_level)
    except ValueError as exc:
        raise ValidationFailedError(f"Unknown access level {access_level!r}") from exc
    if level == AccessLevel.OWNER:
        # Ownership is a property of the project, not a membership role.
        raise ValidationFailedError("OWNER cannot be granted through membership")
    return level


async def list_members(
    session: AsyncSession,
    user: User,
    project: Project,
) -> list[Membership]:
    await require_access(session, user, project)
    stmt = (
        select(Membership)
        .where(Membership.project_id == project.id)
        .order_by(Membership.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def add_members(
    session: AsyncSession,
    user: User,
    project: Project,
    user_ids: Iterable[int],
    access_level: int,
) -> int:
    """
    Grant `access_level` to each user in `user_ids`.

    All ids must refer to existing users, else NotFoundError and nothing is
    written. Returns the number of memberships created.
    """
    await require_access(session, user, project, AccessLevel.MASTER)
    level = _coerce_level(access_level)
    wanted = set(user_ids)
    if not wanted:
        return 0

    result = await session.execute(select(User.id).where(User.id.in_(wanted)))
    existing_users = set(result.scalars().all())
    missing = wanted - existing_users
    if missing:
        raise NotFoundError(f"Unknown user ids: {sorted(missing)}")

    result = await session.execute(
        select(Membership.user_id).where(
            Membership.project_id == project.id,
            Membership.user_id.in_(wanted),
        )
    )
    already_members = set(result.scalars().all())
    to_add = sorted(wanted - already_members - {project.owner_id})

    try:
        for user_id in to_add:
            session.add(
                Membership(user_id=user_id, project_id=project.id, project_access=int(level))
            )
        project.touch_activity()
        await session.commit()
    except Exception:
        await session.rollback()
        logger.exception("Failed to add members to project %s", project.id)
        raise

    logger.info(
        "User %s added %d member(s) to project %s at level %s",
        user.id, len(to_add), project.id, level.name,
    )
    return len(to_add)


async def update_members(
    session: AsyncSession,
    user: User,
    project: Project,
    user_ids: Iterable[int],
    access_level: int,
) -> int:
    """Set `access_level` for existing members. Non-members are ignored."""
    await require_access(session, user, project, AccessLevel.MASTER)
    level = _coerce_level(access_level)
    wanted = set(user_ids)
    if not wanted:
        return 0

    stmt = (
        update(Membership)
        .where(
            Membership.project_id == project.id,
            Membership.user_id.in_(wanted),
        )
        .values(project_access=int(level))
        .execution_options(synchronize_session=False)
    )
    try:
        result = await session.execute(stmt)
        project.touch_activity()
        await session.commit()
    except Exception:
        await session.rollback()
        logger.exception("Failed to update members of project %s", project.id)
        raise

    logger.info(
        "User %s set %d member(s) of project %s to %s",
        user.id, result.rowcount, project.id, level.name,
    )
    return result.rowcount


async def remove_members(
    session: AsyncSession,
    user: User,
    project: Project,
    membership_ids: Iterable[int],
) -> int:
    """
    Delete memberships by id. Ids that don't exist, or that belong to
    another project, are ignored. Returns the number removed.
    """
    await require_access(session, user, project, AccessLevel.MASTER)
    wanted = set(membership_ids)
    if not wanted:
        return 0

    stmt = (
        delete(Membership)
        .where(
            Membership.project_id == project.id,
            Membership.id.in_(wanted),
        )
        .execution_options(synchronize_session=False)
    )
    try:
        result = await session.execute(stmt)
        project.touch_activity()
        await session.commit()
    except Exception:
        await session.rollback()
        logger.exception("Failed to remove members from project %s", project.id)
        raise

    logger.info(
        "User %s removed %d member(s) from project %s",
        user.id, result.rowcount, project.id,
    )
    return result.rowcount
