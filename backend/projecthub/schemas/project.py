"""
Pydantic v2 schemas for projects and their owners.

Separation:
  • ProjectCreate  — what the CLIENT sends.
  • ProjectOut     — what the SERVER returns.

`name` is optional at the schema level on purpose: a missing name is a
domain validation failure (see core.errors), not a request-shape error.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserOut(BaseModel):
    """Public view of a user, embedded in other resources."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    username: str
    name: str
    created_at: datetime.datetime


class ProjectCreate(BaseModel):
    """Payload accepted by POST /projects."""

    name: str | None = Field(
        default=None,
        max_length=255,
        examples=["Gitlab Shell"],
        description="Display name. Required.",
    )
    code: str | None = Field(
        default=None,
        max_length=255,
        examples=["gitlab-shell"],
        description="Unique short handle. Defaults to a slug of name.",
    )
    path: str | None = Field(
        default=None,
        max_length=255,
        examples=["gitlab-shell"],
        description="Repository directory name. Defaults to a slug of name.",
    )
    description: str | None = None
    default_branch: str | None = Field(default=None, max_length=255, examples=["master"])
    issues_enabled: bool | None = None
    wall_enabled: bool | None = None
    merge_requests_enabled: bool | None = None
    wiki_enabled: bool | None = None


class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    description: str | None
    path: str
    default_branch: str
    owner: UserOut
    issues_enabled: bool
    wall_enabled: bool
    merge_requests_enabled: bool
    wiki_enabled: bool
    created_at: datetime.datetime
    last_activity_at: datetime.datetime
