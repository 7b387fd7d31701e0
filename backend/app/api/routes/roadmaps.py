"""Roadmap API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query, Request, status

from app.api.deps import CurrentUser, DBSession, OptionalUser
from app.core.auth import authenticate_request, check_ownership
from app.core.logging import get_logger
from app.models import Roadmap, User
from app.schemas.common import Difficulty
from app.schemas.roadmap import (
    ProgressResponse,
    RoadmapCreate,
    RoadmapListQuery,
    RoadmapResponse,
    StepCompletionRequest,
)
from app.services import roadmap_service

logger = get_logger(__name__)
router = APIRouter(prefix="/roadmaps", tags=["roadmaps"])


def list_params(
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=50)] = 20,
    search: str | None = None,
    difficulty: Difficulty | None = None,
    tags: str | None = None,
) -> RoadmapListQuery:
    return RoadmapListQuery(
        page=page, limit=limit, search=search, difficulty=difficulty, tags=tags
    )


ListParams = Annotated[RoadmapListQuery, Depends(list_params)]


async def _page_json(db: DBSession, roadmaps: list[Roadmap], pagination: dict) -> dict:
    owners = await roadmap_service.load_owners(db, roadmaps)
    return {
        "roadmaps": [
            RoadmapResponse.from_model(r, owners.get(r.created_by)).to_json() for r in roadmaps
        ],
        "pagination": pagination,
    }


async def _roadmap_json(db: DBSession, roadmap: Roadmap) -> dict:
    owner = await db.get(User, roadmap.created_by)
    return RoadmapResponse.from_model(roadmap, owner).to_json()


@router.get("")
async def list_roadmaps(
    request: Request,
    db: DBSession,
    params: ListParams,
    public: bool = False,
    authorization: Annotated[str | None, Header()] = None,
) -> dict:
    """List the caller's roadmaps, or public ones with ``public=true``.

    Only the public listing may be called anonymously.
    """
    if public:
        roadmaps, pagination = await roadmap_service.list_roadmaps(db, params, public_only=True)
        return await _page_json(db, roadmaps, pagination)

    ctx = await authenticate_request(authorization, db)
    request.state.user = ctx.user
    roadmaps, pagination = await roadmap_service.list_roadmaps(db, params, owner_id=ctx.user.id)
    return await _page_json(db, roadmaps, pagination)


@router.get("/public")
async def list_public_roadmaps(db: DBSession, params: ListParams, user: OptionalUser) -> dict:
    roadmaps, pagination = await roadmap_service.list_roadmaps(db, params, public_only=True)
    return await _page_json(db, roadmaps, pagination)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_roadmap(data: RoadmapCreate, user: CurrentUser, db: DBSession) -> dict:
    roadmap = await roadmap_service.create_roadmap(db, user, data)
    return {
        "message": "Roadmap created successfully",
        "roadmap": await _roadmap_json(db, roadmap),
    }


@router.get("/{roadmap_id}")
async def get_roadmap(roadmap_id: int, db: DBSession, user: OptionalUser) -> dict:
    """Get a roadmap the caller owns, can see publicly, or has been shared."""
    roadmap = await roadmap_service.get_readable_roadmap(db, roadmap_id, user)
    return {"roadmap": await _roadmap_json(db, roadmap)}


@router.put("/{roadmap_id}")
async def update_roadmap(
    roadmap_id: int, data: RoadmapCreate, user: CurrentUser, db: DBSession
) -> dict:
    roadmap = await roadmap_service.get_roadmap_or_404(db, roadmap_id)
    check_ownership(roadmap, user)
    roadmap = await roadmap_service.update_roadmap(db, roadmap, data)
    return {
        "message": "Roadmap updated successfully",
        "roadmap": await _roadmap_json(db, roadmap),
    }


@router.delete("/{roadmap_id}")
async def delete_roadmap(roadmap_id: int, user: CurrentUser, db: DBSession) -> dict:
    roadmap = await roadmap_service.get_roadmap_or_404(db, roadmap_id)
    check_ownership(roadmap, user)
    await roadmap_service.delete_roadmap(db, roadmap)
    return {"message": "Roadmap deleted successfully"}


@router.post("/{roadmap_id}/steps/{step_id}/complete")
async def complete_step(
    roadmap_id: int,
    step_id: str,
    data: StepCompletionRequest,
    user: CurrentUser,
    db: DBSession,
) -> dict:
    """Mark one step complete or incomplete and report the new progress."""
    roadmap = await roadmap_service.get_roadmap_or_404(db, roadmap_id)
    check_ownership(roadmap, user)
    progress = await roadmap_service.set_step_completion(db, roadmap, step_id, data.is_completed)
    return {
        "message": "Step completed" if data.is_completed else "Step marked as incomplete",
        "progress": ProgressResponse.model_validate(progress).model_dump(
            mode="json", by_alias=True
        ),
    }


@router.post("/{roadmap_id}/like")
async def toggle_like(roadmap_id: int, user: CurrentUser, db: DBSession) -> dict:
    roadmap = await roadmap_service.get_roadmap_or_404(db, roadmap_id)
    liked = await roadmap_service.toggle_like(db, roadmap, user)
    return {
        "message": "Roadmap liked" if liked else "Roadmap unliked",
        "liked": liked,
        "likeCount": roadmap.like_count,
    }
