"""
Membership model — grants a user an access level on a project.

Stored in `users_projects`. At most one row per (user, project); changing
a member's role updates `project_access` in place.
"""

from __future__ import annotations

import datetime
import enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from projecthub.core.database import Base, utcnow
from projecthub.models.user import User

if TYPE_CHECKING:
    from projecthub.models.project import Project


class AccessLevel(enum.IntEnum):
    """Ordered project roles. Higher values include lower ones."""

    GUEST = 10
    REPORTER = 20
    DEVELOPER = 30
    MASTER = 40
    OWNER = 50


class Membership(Base):
    """A (user, project, access level) triple."""

    __tablename__ = "users_projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    project_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    project_access: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=AccessLevel.GUEST,
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    user: Mapped[User] = relationship(lazy="joined")
    project: Mapped[Project] = relationship(back_populates="memberships", lazy="raise")

    __table_args__ = (
        UniqueConstraint("user_id", "project_id", name="uq_users_projects_user_project"),
    )

    def __repr__(self) -> str:
        return (
            f"<Membership id={self.id} user={self.user_id} "
            f"project={self.project_id} access={self.project_access}>"
        )
