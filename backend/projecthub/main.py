"""
Project Hub API application.

Routers are mounted under /projects (projects, repository reads, members,
snippets) and /todos. Domain errors are mapped to responses in one place,
core.errors.register_exception_handlers.
"""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from sqlalchemy import text

from projecthub.core.config import settings
from projecthub.core.database import engine
from projecthub.core.errors import register_exception_handlers
from projecthub.routers.members import router as members_router
from projecthub.routers.projects import router as projects_router
from projecthub.routers.repository import router as repository_router
from projecthub.routers.snippets import router as snippets_router
from projecthub.routers.todos import router as todos_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────
async def _check_database() -> None:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        logger.warning("Database is not reachable yet; requests will fail until it is.")
    else:
        logger.info("Database reachable at startup")


def _check_repositories_root() -> None:
    root = settings.REPOSITORIES_ROOT
    if root.is_dir():
        logger.info("Serving repositories from %s", root.resolve())
    else:
        logger.warning("Repositories root %s is missing; repository reads will 404.", root)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    await _check_database()
    _check_repositories_root()
    yield
    await engine.dispose()
    logger.info("Database engine disposed")


# ── App ─────────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    description=(
        "Project Hub — projects, members, snippets, and read access "
        "to each project's git repository."
    ),
    lifespan=lifespan,
)

register_exception_handlers(app)

# Mount routers
app.include_router(projects_router, prefix="/projects")
app.include_router(repository_router, prefix="/projects")
app.include_router(members_router, prefix="/projects")
app.include_router(snippets_router, prefix="/projects")
app.include_router(todos_router, prefix="/todos")


# ── Health check ────────────────────────────────────────────
@app.get(
    "/health",
    tags=["System"],
    summary="Liveness probe",
)
async def health_check() -> dict[str, str]:
    """Shallow health check — confirms the process is alive."""
    return {"status": "healthy"}
