"""
Project members router.

GET    /projects/{id}/users  — list memberships
POST   /projects/{id}/users  — add users at project_access (existing members skipped)
PUT    /projects/{id}/users  — change project_access of existing members
DELETE /projects/{id}/users  — remove memberships by membership id

Mutations require MASTER and answer {"count": n}.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.auth.dependencies import Auth
from projecthub.core.database import get_db_session
from projecthub.models.membership import Membership
from projecthub.schemas.membership import (
    MembersChange,
    MembersChanged,
    MembershipOut,
    MembersRemove,
)
from projecthub.services import memberships as membership_service
from projecthub.services import projects as project_service

router = APIRouter(tags=["Members"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.get(
    "/{project_id}/users",
    response_model=list[MembershipOut],
    summary="List project members",
)
async def list_members(
    project_id: str,
    session: DbSession,
    auth: Auth,
) -> list[Membership]:
    project = await project_service.find_project(session, auth.user, project_id)
    return await membership_service.list_members(session, auth.user, project)


@router.post(
    "/{project_id}/users",
    response_model=MembersChanged,
    status_code=status.HTTP_201_CREATED,
    summary="Add users to a project",
)
async def add_members(
    project_id: str,
    payload: MembersChange,
    session: DbSession,
    auth: Auth,
) -> MembersChanged:
    project = await project_service.find_project(session, auth.user, project_id)
    count = await membership_service.add_members(
        session, auth.user, project, payload.ids(), payload.project_access,
    )
    return MembersChanged(count=count)


@router.put(
    "/{project_id}/users",
    response_model=MembersChanged,
    summary="Change the access level of project members",
)
async def update_members(
    project_id: str,
    payload: MembersChange,
    session: DbSession,
    auth: Auth,
) -> MembersChanged:
    project = await project_service.find_project(session, auth.user, project_id)
    count = await membership_service.update_members(
        session, auth.user, project, payload.ids(), payload.project_access,
    )
    return MembersChanged(count=count)


@router.delete(
    "/{project_id}/users",
    response_model=MembersChanged,
    summary="Remove memberships from a project",
)
async def remove_members(
    project_id: str,
    payload: MembersRemove,
    session: DbSession,
    auth: Auth,
) -> MembersChanged:
    project = await project_service.find_project(session, auth.user, project_id)
    count = await membership_service.remove_members(session, auth.user, project, payload.ids())
    return MembersChanged(count=count)
