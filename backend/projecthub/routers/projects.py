"""
Projects router.

GET  /projects        — projects the caller owns or is a member of
POST /projects        — create a project owned by the caller
GET  /projects/{id}   — one project, by numeric id or by code

Unknown and forbidden projects both answer 404 "404 Not found".
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.auth.dependencies import Auth
from projecthub.core.config import settings
from projecthub.core.database import get_db_session
from projecthub.models.project import Project
from projecthub.schemas.project import ProjectCreate, ProjectOut
from projecthub.services import projects as project_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Projects"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.get(
    "",
    response_model=list[ProjectOut],
    summary="List accessible projects",
    description="Projects owned by or shared with the caller, most recently active first.",
)
async def list_projects(
    session: DbSession,
    auth: Auth,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=settings.DEFAULT_PER_PAGE, ge=1, le=settings.MAX_PER_PAGE),
) -> list[Project]:
    return await project_service.list_projects(session, auth.user, page=page, per_page=per_page)


@router.post(
    "",
    response_model=ProjectOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
    description=(
        "Creates a project owned by the caller. code and path default to "
        "a slug of name. A missing name answers 404 (historical contract)."
    ),
)
async def create_project(
    session: DbSession,
    auth: Auth,
    payload: ProjectCreate | None = None,
) -> Project:
    payload = payload or ProjectCreate()
    attrs = project_service.ProjectAttrs(**payload.model_dump())
    return await project_service.create_project(session, auth.user, attrs)


@router.get(
    "/{project_id}",
    response_model=ProjectOut,
    summary="Get a project by id or code",
)
async def get_project(
    project_id: str,
    session: DbSession,
    auth: Auth,
) -> Project:
    return await project_service.find_project(session, auth.user, project_id)
