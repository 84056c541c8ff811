"""
Repository router — live reads from the project's git repository.

GET /projects/{id}/repository/branches
GET /projects/{id}/repository/branches/{branch}
GET /projects/{id}/repository/tags
GET /projects/{id}/repository/commits/{revision}/blob?filepath=…
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.auth.dependencies import Auth
from projecthub.core.database import get_db_session
from projecthub.schemas.repository import RepositoryRefOut
from projecthub.services import projects as project_service
from projecthub.services.repository_store import (
    RepositoryRef,
    RepositoryStore,
    get_repository_store,
)

router = APIRouter(tags=["Repository"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Store = Annotated[RepositoryStore, Depends(get_repository_store)]


@router.get(
    "/{project_id}/repository/branches",
    response_model=list[RepositoryRefOut],
    summary="List branches",
    description="Branches sorted by name, ascending.",
)
async def list_branches(
    project_id: str,
    session: DbSession,
    store: Store,
    auth: Auth,
) -> list[RepositoryRef]:
    project = await project_service.find_project(session, auth.user, project_id)
    return await project_service.list_branches(session, store, auth.user, project)


@router.get(
    "/{project_id}/repository/branches/{branch:path}",
    response_model=RepositoryRefOut,
    summary="Get one branch with its head commit",
)
async def get_branch(
    project_id: str,
    branch: str,
    session: DbSession,
    store: Store,
    auth: Auth,
) -> RepositoryRef:
    project = await project_service.find_project(session, auth.user, project_id)
    return await project_service.get_branch(session, store, auth.user, project, branch)


@router.get(
    "/{project_id}/repository/tags",
    response_model=list[RepositoryRefOut],
    summary="List tags",
    description="Tags sorted by name, descending.",
)
async def list_tags(
    project_id: str,
    session: DbSession,
    store: Store,
    auth: Auth,
) -> list[RepositoryRef]:
    project = await project_service.find_project(session, auth.user, project_id)
    return await project_service.list_tags(session, store, auth.user, project)


@router.get(
    "/{project_id}/repository/commits/{revision:path}/blob",
    response_class=Response,
    summary="Raw file contents at a revision",
    description="revision is a branch (slashes allowed), a tag, or a commit sha.",
)
async def get_blob(
    project_id: str,
    revision: str,
    session: DbSession,
    store: Store,
    auth: Auth,
    filepath: str = Query(..., min_length=1, examples=["README.md"]),
) -> Response:
    project = await project_service.find_project(session, auth.user, project_id)
    content = await project_service.get_blob(
        session, store, auth.user, project, revision, filepath,
    )
    return Response(content=content, media_type="text/plain")
