"""Schemas for project snippets. The body travels as `code` on the wire."""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field

from projecthub.schemas.project import UserOut


class SnippetCreate(BaseModel):
    title: str | None = Field(default=None, max_length=255, examples=["api test"])
    file_name: str | None = Field(default=None, max_length=255, examples=["sample.py"])
    code: str | None = Field(default=None, examples=["print('hello')"])


class SnippetUpdate(BaseModel):
    """Partial update — omitted fields keep their current value."""

    title: str | None = Field(default=None, max_length=255)
    file_name: str | None = Field(default=None, max_length=255)
    code: str | None = None


class SnippetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    file_name: str
    author: UserOut
    project_id: int
    created_at: datetime.datetime
    updated_at: datetime.datetime
