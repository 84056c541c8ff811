"""Shared fixtures: a fresh SQLite database per test, an HTTP client, users
with API keys, a project with a snippet, and a bare git repository."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import itertools
from collections.abc import Callable
from pathlib import Path

import pytest
from dulwich.objects import Blob, Commit, Tag, Tree
from dulwich.repo import Repo
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from projecthub.auth.keys import issue_api_key
from projecthub.core.database import Base, get_db_session
from projecthub.main import app
from projecthub.models.api_key import APIKey
from projecthub.models.membership import AccessLevel, Membership
from projecthub.models.project import Project
from projecthub.models.snippet import Snippet
from projecthub.models.user import User
from projecthub.services.repository_store import RepositoryStore, get_repository_store

_AUTHOR = b"Dmitriy Zaporozhets <dmitriy@example.com>"
_user_seq = itertools.count(1)


# ── Database ────────────────────────────────────────────────
@pytest.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def scalar(session_factory):
    """Run a scalar query in a fresh session, so results never come from a
    stale identity map."""

    async def _scalar(stmt):
        async with session_factory() as fresh:
            result = await fresh.execute(stmt)
            return result.scalar()

    return _scalar


@pytest.fixture
def count(scalar):
    async def _count(model, *criteria):
        return await scalar(select(func.count()).select_from(model).where(*criteria))

    return _count


# ── Repositories ────────────────────────────────────────────
@pytest.fixture
def repos_root(tmp_path) -> Path:
    root = tmp_path / "repositories"
    root.mkdir()
    return root


@pytest.fixture
def store(repos_root) -> RepositoryStore:
    return RepositoryStore(repos_root)


# ── App / client ────────────────────────────────────────────
@pytest.fixture
async def client(session_factory, store):
    async def _session_override():
        async with session_factory() as request_session:
            yield request_session

    app.dependency_overrides[get_db_session] = _session_override
    app.dependency_overrides[get_repository_store] = lambda: store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ── Users ───────────────────────────────────────────────────
@pytest.fixture
def make_user(session) -> Callable:
    """Create a user with an active API key; returns (user, headers)."""

    async def _make_user(email: str | None = None) -> tuple[User, dict[str, str]]:
        n = next(_user_seq)
        email = email or f"user{n}@example.com"
        user = User(email=email, username=f"user{n}", name=f"User {n}")
        session.add(user)
        await session.flush()

        key = issue_api_key()
        session.add(APIKey(user_id=user.id, key_hash=key.key_hash, prefix=key.prefix))
        await session.commit()
        return user, key.authorization

    return _make_user


@pytest.fixture
async def owner(make_user):
    return await make_user("owner@example.com")


@pytest.fixture
async def user(owner):
    return owner[0]


@pytest.fixture
async def headers(owner):
    return owner[1]


@pytest.fixture
async def project(session, user) -> Project:
    project = Project(
        name="Gitlab Shell",
        code="gitlabhq",
        path="gitlabhq",
        description="Sample project",
        owner=user,
    )
    session.add(project)
    await session.commit()
    return project


@pytest.fixture
async def snippet(session, user, project) -> Snippet:
    snippet = Snippet(
        project_id=project.id,
        author=user,
        title="example",
        file_name="example.py",
        content="print('example')\n",
    )
    session.add(snippet)
    await session.commit()
    return snippet


@pytest.fixture
async def add_member(session):
    async def _add_member(member: User, project: Project, level: AccessLevel) -> Membership:
        membership = Membership(user_id=member.id, project_id=project.id, project_access=int(level))
        session.add(membership)
        await session.commit()
        return membership

    return _add_member


# ── Git fixture repository ──────────────────────────────────
def _tree(repo: Repo, files: dict[str, bytes]) -> Tree:
    """Build (possibly nested) trees for {"dir/file": content}."""
    tree = Tree()
    subdirs: dict[str, dict[str, bytes]] = {}
    for path, content in files.items():
        head, _, rest = path.partition("/")
        if rest:
            subdirs.setdefault(head, {})[rest] = content
            continue
        blob = Blob.from_string(content)
        repo.object_store.add_object(blob)
        tree.add(head.encode(), 0o100644, blob.id)
    for name, sub_files in subdirs.items():
        subtree = _tree(repo, sub_files)
        tree.add(name.encode(), 0o040000, subtree.id)
    repo.object_store.add_object(tree)
    return tree


def _commit(repo: Repo, files: dict[str, bytes], message: str, parents=(), when=1_330_000_000):
    tree = _tree(repo, files)
    commit = Commit()
    commit.tree = tree.id
    commit.parents = list(parents)
    commit.author = commit.committer = _AUTHOR
    commit.author_time = commit.commit_time = when
    commit.author_timezone = commit.commit_timezone = 0
    commit.encoding = b"UTF-8"
    commit.message = message.encode() + b"\n"
    repo.object_store.add_object(commit)
    return commit


@pytest.fixture
def git_repo(repos_root, project):
    """
    A bare repository for `project` with:
      branches: master, new_design, feature/login, alpha
      tags:     v0.9 (lightweight), v1.0.0 (lightweight), v1.1.0 (annotated)
    Returns a dict of the commit ids by name.
    """
    path = repos_root / f"{project.path}.git"
    repo = Repo.init_bare(str(path), mkdir=True)

    files = {
        "README.md": b"# Gitlab Shell\n\nSample repository.\n",
        "lib/shell.py": b"def main():\n    return 0\n",
    }
    initial = _commit(repo, files, "Initial commit")
    second = _commit(
        repo,
        {**files, "CHANGELOG": b"v1.0.0\n"},
        "Add changelog",
        parents=[initial.id],
        when=1_330_000_100,
    )
    design = _commit(
        repo,
        {**files, "design.md": b"new design\n"},
        "New design",
        parents=[initial.id],
        when=1_330_000_200,
    )

    repo.refs[b"refs/heads/master"] = second.id
    repo.refs[b"refs/heads/new_design"] = design.id
    repo.refs[b"refs/heads/feature/login"] = initial.id
    repo.refs[b"refs/heads/alpha"] = initial.id
    repo.refs.set_symbolic_ref(b"HEAD", b"refs/heads/master")

    repo.refs[b"refs/tags/v0.9"] = initial.id
    repo.refs[b"refs/tags/v1.0.0"] = second.id

    annotated = Tag()
    annotated.name = b"v1.1.0"
    annotated.message = b"Release 1.1.0\n"
    annotated.tagger = _AUTHOR
    annotated.tag_time = 1_330_000_300
    annotated.tag_timezone = 0
    annotated.object = (Commit, design.id)
    repo.object_store.add_object(annotated)
    repo.refs[b"refs/tags/v1.1.0"] = annotated.id
    repo.close()

    return {
        "initial": initial.id.decode(),
        "master": second.id.decode(),
        "new_design": design.id.decode(),
    }
