"""
Todo model — an item in a user's personal task queue.

A todo points at a target inside a project (an issue, a merge request, or
a commit). Targets are referenced by type + id and carry a denormalized
title, so the queue can be rendered without loading the target itself.
"""

from __future__ import annotations

import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from projecthub.core.database import Base, utcnow
from projecthub.models.project import Project
from projecthub.models.user import User

# ── Actions ─────────────────────────────────────────────────
ASSIGNED = 1
MENTIONED = 2
BUILD_FAILED = 3

# ── States ──────────────────────────────────────────────────
STATE_PENDING = "pending"
STATE_DONE = "done"

# ── Target types ────────────────────────────────────────────
TARGET_ISSUE = "Issue"
TARGET_MERGE_REQUEST = "MergeRequest"
TARGET_COMMIT = "Commit"


class Todo(Base):
    """One pending (or done) action for a user."""

    __tablename__ = "todos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False,
    )
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )

    # ── Target ──────────────────────────────────────────────
    target_type: Mapped[str] = mapped_column(String(32), nullable=False)
    target_id: Mapped[str] = mapped_column(String(64), nullable=False)
    target_title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    note_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    action: Mapped[int] = mapped_column(Integer, nullable=False)
    state: Mapped[str] = mapped_column(String(16), nullable=False, default=STATE_PENDING)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )

    project: Mapped[Project] = relationship(lazy="joined")
    author: Mapped[User] = relationship(foreign_keys=[author_id], lazy="joined")

    __table_args__ = (
        CheckConstraint("state IN ('pending', 'done')", name="ck_todos_state_valid"),
        CheckConstraint(
            "target_type IN ('Issue', 'MergeRequest', 'Commit')",
            name="ck_todos_target_type_valid",
        ),
        Index("ix_todos_user_id_state", "user_id", "state"),
    )

    # ── Helpers ─────────────────────────────────────────────
    def for_commit(self) -> bool:
        return self.target_type == TARGET_COMMIT

    def build_failed(self) -> bool:
        return self.action == BUILD_FAILED

    def __repr__(self) -> str:
        return (
            f"<Todo id={self.id} user={self.user_id} "
            f"{self.target_type}:{self.target_id} state={self.state}>"
        )
