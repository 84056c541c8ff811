"""
Project snippets router.

GET    /projects/{id}/snippets
POST   /projects/{id}/snippets
GET    /projects/{id}/snippets/{snippet_id}
PUT    /projects/{id}/snippets/{snippet_id}
DELETE /projects/{id}/snippets/{snippet_id}
GET    /projects/{id}/snippets/{snippet_id}/raw
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.auth.dependencies import Auth
from projecthub.core.database import get_db_session
from projecthub.models.snippet import Snippet
from projecthub.schemas.snippet import SnippetCreate, SnippetOut, SnippetUpdate
from projecthub.services import projects as project_service
from projecthub.services import snippets as snippet_service

router = APIRouter(tags=["Snippets"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.get(
    "/{project_id}/snippets",
    response_model=list[SnippetOut],
    summary="List project snippets",
)
async def list_snippets(
    project_id: str,
    session: DbSession,
    auth: Auth,
) -> list[Snippet]:
    project = await project_service.find_project(session, auth.user, project_id)
    return await snippet_service.list_snippets(session, auth.user, project)


@router.post(
    "/{project_id}/snippets",
    response_model=SnippetOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project snippet",
)
async def create_snippet(
    project_id: str,
    payload: SnippetCreate,
    session: DbSession,
    auth: Auth,
) -> Snippet:
    project = await project_service.find_project(session, auth.user, project_id)
    return await snippet_service.create_snippet(
        session,
        auth.user,
        project,
        title=payload.title,
        file_name=payload.file_name,
        content=payload.code,
    )


@router.get(
    "/{project_id}/snippets/{snippet_id}",
    response_model=SnippetOut,
    summary="Get a project snippet",
)
async def get_snippet(
    project_id: str,
    snippet_id: int,
    session: DbSession,
    auth: Auth,
) -> Snippet:
    project = await project_service.find_project(session, auth.user, project_id)
    return await snippet_service.get_snippet(session, auth.user, project, snippet_id)


@router.put(
    "/{project_id}/snippets/{snippet_id}",
    response_model=SnippetOut,
    summary="Update a project snippet",
)
async def update_snippet(
    project_id: str,
    snippet_id: int,
    payload: SnippetUpdate,
    session: DbSession,
    auth: Auth,
) -> Snippet:
    project = await project_service.find_project(session, auth.user, project_id)
    patch = snippet_service.SnippetPatch(
        title=payload.title,
        file_name=payload.file_name,
        content=payload.code,
    )
    return await snippet_service.update_snippet(session, auth.user, project, snippet_id, patch)


@router.delete(
    "/{project_id}/snippets/{snippet_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete a project snippet",
)
async def delete_snippet(
    project_id: str,
    snippet_id: int,
    session: DbSession,
    auth: Auth,
) -> dict[str, int]:
    project = await project_service.find_project(session, auth.user, project_id)
    await snippet_service.delete_snippet(session, auth.user, project, snippet_id)
    return {"id": snippet_id}


@router.get(
    "/{project_id}/snippets/{snippet_id}/raw",
    response_class=Response,
    summary="Raw snippet content",
)
async def get_raw_snippet(
    project_id: str,
    snippet_id: int,
    session: DbSession,
    auth: Auth,
) -> Response:
    project = await project_service.find_project(session, auth.user, project_id)
    content = await snippet_service.get_raw_snippet_content(
        session, auth.user, project, snippet_id,
    )
    return Response(content=content, media_type="text/plain")
