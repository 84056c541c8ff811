"""
Project model — a code project with an owner, members, and snippets.

Design notes:
  • `code` and `path` are unique, URL-safe handles. `code` is never purely
    numeric so GET /projects/{id_or_code} can try the id first.
  • The owner holds OWNER access implicitly; no membership row is needed.
  • Snippets are owned by the project and go away with it.
  • `last_activity_at` drives the "recent activity" ordering of listings.
"""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from projecthub.core.database import Base, utcnow
from projecthub.models.user import User

if TYPE_CHECKING:
    from projecthub.models.membership import Membership
    from projecthub.models.snippet import Snippet


class Project(Base):
    """One project — the unit of access control."""

    __tablename__ = "projects"

    # ── Identity ────────────────────────────────────────────
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    path: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    default_branch: Mapped[str] = mapped_column(
        String(255), nullable=False, default="master",
    )

    # ── Ownership ───────────────────────────────────────────
    owner_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    owner: Mapped[User] = relationship(lazy="joined")

    # ── Feature flags ───────────────────────────────────────
    issues_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    wall_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    merge_requests_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    wiki_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # ── Timestamps ──────────────────────────────────────────
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
    last_activity_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True,
    )

    # ── Children ────────────────────────────────────────────
    memberships: Mapped[list[Membership]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )
    snippets: Mapped[list[Snippet]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    def touch_activity(self) -> None:
        """Mark the project as recently active."""
        self.last_activity_at = utcnow()

    def __repr__(self) -> str:
        return f"<Project id={self.id} code={self.code!r}>"
