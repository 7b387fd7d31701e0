"""Roadmap model for learning plan persistence."""

import math
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, utcnow


def compute_progress(steps: list[dict[str, Any]]) -> dict[str, Any]:
    """Derive the progress block from step completion flags.

    Percentage rounds half up, so 1 of 8 steps is 13%.
    """
    total = len(steps)
    completed = sum(1 for step in steps if step.get("is_completed"))
    percentage = math.floor(100 * completed / total + 0.5) if total else 0
    return {
        "completed_steps": completed,
        "total_steps": total,
        "percentage": percentage,
        "last_updated": utcnow().isoformat(),
    }


class Roadmap(Base):
    __tablename__ = "roadmaps"

    id: Mapped[int] = mapped_column(primary_key=True)
    created_by: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )

    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")
    topic: Mapped[str] = mapped_column(String(200), index=True)
    difficulty: Mapped[str] = mapped_column(String(20), default="intermediate")
    estimated_duration: Mapped[dict[str, Any]] = mapped_column(
        JSON, default=lambda: {"value": 1, "unit": "weeks"}
    )

    # Ordered step dicts; always reassign, never mutate in place
    steps: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    shared_with: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    likes: Mapped[list[int]] = mapped_column(JSON, default=list)
    forks: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    progress: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    # "metadata" is reserved on declarative classes
    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    @property
    def like_count(self) -> int:
        return len(self.likes or [])

    @property
    def version(self) -> int:
        return int((self.meta or {}).get("version", 1))

    def is_shared_with(self, user_id: int) -> bool:
        return any(share.get("user") == user_id for share in self.shared_with or [])


@event.listens_for(Roadmap, "before_insert")
@event.listens_for(Roadmap, "before_update")
def _recompute_progress(mapper, connection, target: Roadmap) -> None:  # type: ignore[no-untyped-def]
    target.progress = compute_progress(target.steps or [])
