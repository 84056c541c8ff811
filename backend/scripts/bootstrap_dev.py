"""
Dev bootstrap script — create a user, an API key, and a sample project.

Usage:
    python -m scripts.bootstrap_dev [email]

This will:
  1. Create a user (default dev@example.com)
  2. Generate an API key for that user
  3. Create a project "Dev Project" owned by the user
  4. Initialise an empty bare repository for it under REPOSITORIES_ROOT
  5. Print the raw key ONCE (it is never stored)

The raw key is shown exactly once — copy it immediately.
"""

import asyncio
import sys

from dulwich.repo import Repo

from projecthub.auth.keys import issue_api_key
from projecthub.core.config import settings
from projecthub.core.database import async_session_factory, engine
from projecthub.models.api_key import APIKey
import projecthub.models.snippet  # noqa: F401  (registers the mapper)
from projecthub.models.user import User
from projecthub.services.projects import ProjectAttrs, create_project
from projecthub.services.repository_store import RepositoryStore


async def main(email: str) -> None:
    username = email.split("@", maxsplit=1)[0]

    async with async_session_factory() as session:
        # ── Create user ─────────────────────────────────────
        user = User(email=email, username=username, name=username.title())
        session.add(user)
        await session.flush()  # get user.id

        # ── Generate API key ────────────────────────────────
        key = issue_api_key()

        api_key = APIKey(
            user_id=user.id,
            key_hash=key.key_hash,
            prefix=key.prefix,
        )
        session.add(api_key)
        await session.commit()

        # ── Create project ──────────────────────────────────
        project = await create_project(session, user, ProjectAttrs(name="Dev Project"))

    # ── Empty repository ────────────────────────────────────
    repo_path = RepositoryStore(settings.REPOSITORIES_ROOT).repository_path(project.path)
    if not repo_path.exists():
        repo_path.mkdir(parents=True)
        Repo.init_bare(str(repo_path)).close()

    # ── Print results ───────────────────────────────────────
    print()
    print("=" * 60)
    print("  Dev Bootstrap Complete")
    print("=" * 60)
    print()
    print(f"  User:       {user.email} (id {user.id})")
    print(f"  Project:    {project.name} (id {project.id}, code {project.code})")
    print(f"  Repository: {repo_path}")
    print()
    print(f"  API Key:    {key.raw}")
    print()
    print("  ⚠  Copy this key now — it will NEVER be shown again.")
    print("=" * 60)
    print()

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "dev@example.com"))
