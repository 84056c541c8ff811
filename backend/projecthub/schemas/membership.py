"""
Schemas for project membership endpoints.

`user_ids` arrives either as a JSON list or as an index-keyed object
({"0": 2, "1": 3}), the shape form-encoded clients produce.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field

from projecthub.models.membership import AccessLevel
from projecthub.schemas.project import UserOut


class _IdsPayload(BaseModel):
    user_ids: dict[str, int] | list[int] = Field(default_factory=list)

    def ids(self) -> list[int]:
        if isinstance(self.user_ids, dict):
            return list(self.user_ids.values())
        return list(self.user_ids)


class MembersChange(_IdsPayload):
    """Body of POST / PUT /projects/{id}/users. user_ids are user ids."""

    project_access: int = Field(
        default=int(AccessLevel.GUEST),
        examples=[int(AccessLevel.DEVELOPER)],
        description="10 guest, 20 reporter, 30 developer, 40 master.",
    )


class MembersRemove(_IdsPayload):
    """Body of DELETE /projects/{id}/users. user_ids are membership ids."""


class MembersChanged(BaseModel):
    count: int


class MembershipOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_access: int
    user: UserOut
    created_at: datetime.datetime
