"""Schemas for the todo queue and its filter options."""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict

from projecthub.schemas.project import UserOut


class TodoProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    path: str


class TodoOut(BaseModel):
    """A todo plus the strings a client needs to render it."""

    id: int
    state: str
    action: int
    action_name: str
    target_type: str
    target_id: str
    target_title: str
    target_reference: str
    target_path: str
    author: UserOut
    project: TodoProjectOut
    created_at: datetime.datetime


class TodoCounts(BaseModel):
    pending: int
    done: int


class FilterOptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str


class TodoFilterOptions(BaseModel):
    actions: list[FilterOptionOut]
    projects: list[FilterOptionOut]
    types: list[FilterOptionOut]
