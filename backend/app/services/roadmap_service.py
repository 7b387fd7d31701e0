"""Roadmap service for CRUD operations and progress tracking."""

import math
from typing import Any

from sqlalchemy import exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import utcnow
from app.core.errors import AuthorizationError, NotFoundError
from app.core.logging import get_logger
from app.models import Roadmap, User
from app.schemas.roadmap import RoadmapCreate, RoadmapListQuery, StepSchema, resolve_step_id

logger = get_logger(__name__)


# ============================================================================
# Step normalization
# ============================================================================


def normalize_step(step: StepSchema, index: int, keep_completion: bool) -> dict[str, Any]:
    """Fill defaults for one submitted step; ``index`` is 0-based.

    New roadmaps always start incomplete. Full replacements carry the
    completion state from the payload.
    """
    is_completed = step.is_completed if keep_completion else False
    completed_at = step.completed_at if keep_completion and is_completed else None
    return {
        "id": resolve_step_id(step, index),
        "title": step.title,
        "description": step.description or "",
        "resources": [r.model_dump() for r in step.resources or []],
        "estimated_time": (
            step.estimated_time.model_dump()
            if step.estimated_time
            else {"value": 1, "unit": "hours"}
        ),
        "difficulty": step.difficulty or "intermediate",
        "prerequisites": list(step.prerequisites or []),
        "skills": list(step.skills or []),
        "is_completed": is_completed,
        "completed_at": completed_at.isoformat() if completed_at else None,
        "order": index + 1,
    }


def _normalize_steps(steps: list[StepSchema], keep_completion: bool) -> list[dict[str, Any]]:
    return [normalize_step(step, i, keep_completion) for i, step in enumerate(steps)]


# ============================================================================
# Access checks
# ============================================================================


def can_read(roadmap: Roadmap, user: User | None) -> bool:
    if roadmap.is_public:
        return True
    if user is None:
        return False
    return roadmap.created_by == user.id or roadmap.is_shared_with(user.id)


# ============================================================================
# CRUD Operations
# ============================================================================


async def get_roadmap(db: AsyncSession, roadmap_id: int) -> Roadmap | None:
    """Get a roadmap by ID."""
    return await db.get(Roadmap, roadmap_id)


async def get_roadmap_or_404(db: AsyncSession, roadmap_id: int) -> Roadmap:
    roadmap = await get_roadmap(db, roadmap_id)
    if roadmap is None:
        raise NotFoundError("Roadmap not found", code="ROADMAP_NOT_FOUND")
    return roadmap


async def get_readable_roadmap(db: AsyncSession, roadmap_id: int, user: User | None) -> Roadmap:
    """Fetch a roadmap the caller may see: owner, public, or shared.

    Raises:
        NotFoundError: ROADMAP_NOT_FOUND.
        AuthorizationError: ACCESS_DENIED.
    """
    roadmap = await get_roadmap_or_404(db, roadmap_id)
    if not can_read(roadmap, user):
        raise AuthorizationError("Access denied", code="ACCESS_DENIED")
    return roadmap


async def create_roadmap(db: AsyncSession, owner: User, data: RoadmapCreate) -> Roadmap:
    """Create a roadmap owned by ``owner``.

    Args:
        db: Database session
        owner: Requesting user
        data: Validated payload (at least one step)

    Returns:
        The persisted roadmap with progress computed

    Note: This function commits the transaction.
    """
    meta = data.metadata
    roadmap = Roadmap(
        created_by=owner.id,
        title=data.title,
        description=data.description or "",
        topic=data.topic,
        difficulty=data.difficulty or "intermediate",
        estimated_duration=(
            data.estimated_duration.model_dump()
            if data.estimated_duration
            else {"value": 1, "unit": "weeks"}
        ),
        steps=_normalize_steps(data.steps, keep_completion=False),
        tags=list(data.tags or []),
        is_public=bool(data.is_public),
        shared_with=[],
        likes=[],
        forks=[],
        meta={
            "generated_by": meta.generated_by if meta else "user",
            "ai_model": meta.ai_model if meta else None,
            "prompt": meta.prompt if meta else None,
            "version": 1,
        },
    )
    db.add(roadmap)
    await db.commit()
    await db.refresh(roadmap)

    logger.info(
        "Roadmap created",
        roadmap_id=roadmap.id,
        user_id=owner.id,
        steps=len(roadmap.steps),
    )
    return roadmap


async def update_roadmap(db: AsyncSession, roadmap: Roadmap, data: RoadmapCreate) -> Roadmap:
    """Replace a roadmap's fields and steps and bump its version.

    Note: This function commits the transaction.
    """
    roadmap.title = data.title
    roadmap.description = data.description or ""
    roadmap.topic = data.topic
    if data.difficulty:
        roadmap.difficulty = data.difficulty
    if data.estimated_duration:
        roadmap.estimated_duration = data.estimated_duration.model_dump()
    roadmap.steps = _normalize_steps(data.steps, keep_completion=True)
    roadmap.tags = list(data.tags or [])
    if data.is_public is not None:
        roadmap.is_public = data.is_public
    roadmap.meta = {**(roadmap.meta or {}), "version": roadmap.version + 1}

    await db.commit()
    await db.refresh(roadmap)

    logger.info("Roadmap updated", roadmap_id=roadmap.id, version=roadmap.version)
    return roadmap


async def delete_roadmap(db: AsyncSession, roadmap: Roadmap) -> None:
    """Note: This function commits the transaction."""
    roadmap_id = roadmap.id
    await db.delete(roadmap)
    await db.commit()
    logger.info("Roadmap deleted", roadmap_id=roadmap_id)


async def set_step_completion(
    db: AsyncSession, roadmap: Roadmap, step_id: str, is_completed: bool
) -> dict[str, Any]:
    """Flip one step's completion flag and return the recomputed progress.

    Concurrent toggles on the same roadmap are last-writer-wins.

    Raises:
        NotFoundError: STEP_NOT_FOUND.
    """
    if not any(step.get("id") == step_id for step in roadmap.steps or []):
        raise NotFoundError("Step not found", code="STEP_NOT_FOUND")

    now = utcnow().isoformat()
    roadmap.steps = [
        (
            {
                **step,
                "is_completed": is_completed,
                "completed_at": now if is_completed else None,
            }
            if step.get("id") == step_id
            else step
        )
        for step in roadmap.steps
    ]
    await db.commit()
    await db.refresh(roadmap)

    logger.info(
        "Step completion updated",
        roadmap_id=roadmap.id,
        step_id=step_id,
        is_completed=is_completed,
        percentage=roadmap.progress.get("percentage"),
    )
    return roadmap.progress


async def toggle_like(db: AsyncSession, roadmap: Roadmap, user: User) -> bool:
    """Add or remove ``user`` from the likers. Returns the new liked state."""
    likes = list(roadmap.likes or [])
    liked = user.id not in likes
    if liked:
        likes.append(user.id)
    else:
        likes = [uid for uid in likes if uid != user.id]
    roadmap.likes = likes
    await db.commit()
    await db.refresh(roadmap)

    logger.info("Roadmap like toggled", roadmap_id=roadmap.id, user_id=user.id, liked=liked)
    return liked


# ============================================================================
# Listing
# ============================================================================


def _apply_filters(query, params: RoadmapListQuery):  # type: ignore[no-untyped-def]
    if params.search:
        pattern = f"%{params.search.strip()}%"
        query = query.where(
            or_(
                Roadmap.title.ilike(pattern),
                Roadmap.description.ilike(pattern),
                Roadmap.topic.ilike(pattern),
            )
        )
    if params.difficulty:
        query = query.where(Roadmap.difficulty == params.difficulty)
    tags = params.tag_list
    if tags:
        # Any stored tag equal to any requested one
        stored = func.json_each(Roadmap.tags).table_valued("value")
        query = query.where(exists(select(1).select_from(stored).where(stored.c.value.in_(tags))))
    return query


async def list_roadmaps(
    db: AsyncSession,
    params: RoadmapListQuery,
    owner_id: int | None = None,
    public_only: bool = False,
) -> tuple[list[Roadmap], dict[str, int]]:
    """List roadmaps newest first, either one owner's or the public ones.

    Returns:
        (page of roadmaps, pagination dict with page/limit/total/pages)
    """
    base = select(Roadmap)
    if public_only:
        base = base.where(Roadmap.is_public.is_(True))
    elif owner_id is not None:
        base = base.where(Roadmap.created_by == owner_id)
    base = _apply_filters(base, params)

    total = (
        await db.execute(select(func.count()).select_from(base.subquery()))
    ).scalar_one()

    result = await db.execute(
        base.order_by(Roadmap.created_at.desc(), Roadmap.id.desc())
        .offset((params.page - 1) * params.limit)
        .limit(params.limit)
    )
    roadmaps = list(result.scalars().all())

    pagination = {
        "page": params.page,
        "limit": params.limit,
        "total": total,
        "pages": math.ceil(total / params.limit),
    }
    return roadmaps, pagination


async def load_owners(db: AsyncSession, roadmaps: list[Roadmap]) -> dict[int, User]:
    """Map owner id to User for a batch of roadmaps."""
    owner_ids = {r.created_by for r in roadmaps}
    if not owner_ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(owner_ids)))
    return {user.id: user for user in result.scalars().all()}
