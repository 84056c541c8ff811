"""
Repository store — read access to branches, tags, and blobs.

Each project maps to a bare git repository at
    <REPOSITORIES_ROOT>/<project.path>.git
read through dulwich. Nothing here is persisted by this service; every call
opens the repository and reads live refs.

All methods are blocking (file I/O). Async callers run them through
`run_in_threadpool`.

A missing repository, branch, revision, or file raises NotFoundError.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from dulwich.errors import NotGitRepository, NotTreeError
from dulwich.object_store import tree_lookup_path
from dulwich.objects import Blob, Commit as GitCommit, Tag as GitTag
from dulwich.repo import Repo

from projecthub.core.config import settings
from projecthub.core.errors import NotFoundError

logger = logging.getLogger(__name__)

_HEADS = b"refs/heads/"
_TAGS = b"refs/tags/"
_SHA_RE = re.compile(r"^[0-9a-f]{40}$")
_IDENTITY_RE = re.compile(r"^(?P<name>.*?)\s*<(?P<email>[^>]*)>\s*$")


# ── Value objects ───────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class Identity:
    name: str
    email: str


@dataclass(frozen=True, slots=True)
class Commit:
    """A commit as returned to API clients."""

    id: str
    tree: str
    message: str
    author: Identity
    committer: Identity
    authored_date: int
    committed_date: int
    parents: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class RepositoryRef:
    """A branch or tag pointing at a commit."""

    name: str
    commit: Commit


def _parse_identity(raw: bytes) -> Identity:
    text = raw.decode("utf-8", errors="replace")
    match = _IDENTITY_RE.match(text)
    if match is None:
        return Identity(name=text.strip(), email="")
    return Identity(name=match.group("name"), email=match.group("email"))


def _to_commit(commit: GitCommit) -> Commit:
    return Commit(
        id=commit.id.decode("ascii"),
        tree=commit.tree.decode("ascii"),
        message=commit.message.decode("utf-8", errors="replace").strip(),
        author=_parse_identity(commit.author),
        committer=_parse_identity(commit.committer),
        authored_date=commit.author_time,
        committed_date=commit.commit_time,
        parents=[parent.decode("ascii") for parent in commit.parents],
    )


class RepositoryStore:
    """Read-only view over the bare repositories under one root directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    # ── Repository lookup ───────────────────────────────────
    def repository_path(self, project_path: str) -> Path:
        return self.root / f"{project_path}.git"

    def open(self, project_path: str) -> Repo:
        repo_path = self.repository_path(project_path)
        if not repo_path.is_dir():
            raise NotFoundError(f"No repository for {project_path!r}")
        try:
            return Repo(str(repo_path))
        except NotGitRepository as exc:
            logger.warning("Path %s is not a git repository", repo_path)
            raise NotFoundError(f"No repository for {project_path!r}") from exc

    # ── Refs ────────────────────────────────────────────────
    def list_branches(self, project_path: str) -> list[RepositoryRef]:
        """All branches, ascending by name."""
        with self.open(project_path) as repo:
            refs = self._refs_under(repo, _HEADS)
        return sorted(refs, key=lambda ref: ref.name)

    def list_tags(self, project_path: str) -> list[RepositoryRef]:
        """All tags, sorted by name then reversed (newest-looking first)."""
        with self.open(project_path) as repo:
            refs = self._refs_under(repo, _TAGS)
        return list(reversed(sorted(refs, key=lambda ref: ref.name)))

    def get_branch(self, project_path: str, name: str) -> RepositoryRef:
        with self.open(project_path) as repo:
            sha = repo.refs.as_dict().get(_HEADS + name.encode("utf-8"))
            if sha is None:
                raise NotFoundError(f"Branch {name!r} not found")
            return RepositoryRef(name=name, commit=_to_commit(self._peel(repo, sha)))

    # ── Blobs ───────────────────────────────────────────────
    def get_blob(self, project_path: str, revision: str, file_path: str) -> bytes:
        """
        Raw file contents at a revision.

        `revision` is a branch name, a tag name, or a full commit sha.
        """
        with self.open(project_path) as repo:
            commit = self._resolve_revision(repo, revision)
            try:
                _mode, sha = tree_lookup_path(
                    repo.object_store.__getitem__,
                    commit.tree,
                    file_path.strip("/").encode("utf-8"),
                )
            except (KeyError, NotTreeError) as exc:
                raise NotFoundError(f"{file_path!r} not found at {revision!r}") from exc

            obj = repo.object_store[sha]
            if not isinstance(obj, Blob):
                raise NotFoundError(f"{file_path!r} is not a file at {revision!r}")
            return obj.data

    # ── Internals ───────────────────────────────────────────
    def _refs_under(self, repo: Repo, prefix: bytes) -> list[RepositoryRef]:
        refs = []
        for ref_name, sha in repo.refs.as_dict().items():
            if not ref_name.startswith(prefix):
                continue
            name = ref_name[len(prefix):].decode("utf-8")
            refs.append(RepositoryRef(name=name, commit=_to_commit(self._peel(repo, sha))))
        return refs

    def _resolve_revision(self, repo: Repo, revision: str) -> GitCommit:
        refs = repo.refs.as_dict()
        encoded = revision.encode("utf-8")
        for prefix in (_HEADS, _TAGS):
            sha = refs.get(prefix + encoded)
            if sha is not None:
                return self._peel(repo, sha)

        if _SHA_RE.match(revision) and encoded in repo.object_store:
            return self._peel(repo, encoded)

        raise NotFoundError(f"Revision {revision!r} not found")

    @staticmethod
    def _peel(repo: Repo, sha: bytes) -> GitCommit:
        """Follow annotated tags down to the commit they point at."""
        obj = repo.object_store[sha]
        while isinstance(obj, GitTag):
            _type, target = obj.object
            obj = repo.object_store[target]
        if not isinstance(obj, GitCommit):
            raise NotFoundError(f"{sha.decode('ascii')} does not point at a commit")
        return obj


def get_repository_store() -> RepositoryStore:
    """FastAPI dependency — the store rooted at settings.REPOSITORIES_ROOT."""
    return RepositoryStore(settings.REPOSITORIES_ROOT)
