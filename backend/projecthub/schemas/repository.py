"""
Response schemas for repository refs.

Built from the RepositoryStore dataclasses via from_attributes, so the
wire shape is declared here and nowhere else.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class IdentityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    email: str


class ParentOut(BaseModel):
    id: str


class CommitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tree: str
    message: str
    parents: list[ParentOut]
    author: IdentityOut
    committer: IdentityOut
    authored_date: int
    committed_date: int

    @field_validator("parents", mode="before")
    @classmethod
    def _wrap_parent_ids(cls, value: list) -> list:
        return [{"id": parent} if isinstance(parent, str) else parent for parent in value]


class RepositoryRefOut(BaseModel):
    """A branch or a tag."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    commit: CommitOut
