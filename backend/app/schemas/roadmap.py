"""Roadmap schemas for API requests and responses."""

from datetime import datetime
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import Field, StringConstraints, field_validator

from app.schemas.common import CamelModel, Difficulty, TimeUnit

if TYPE_CHECKING:
    from app.models import Roadmap, User

ResourceType = Literal["article", "video", "course", "book", "documentation", "tool", "other"]
GeneratedBy = Literal["ai", "user", "template"]

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)]
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ResourceSchema(CamelModel):
    title: str | None = None
    url: str | None = None
    type: ResourceType = "article"


class EstimatedTime(CamelModel):
    value: float = 1
    unit: TimeUnit = "hours"


class StepSchema(CamelModel):
    """A step as submitted by clients; everything but the title is optional."""

    id: str | None = None
    title: RequiredText
    description: str | None = None
    resources: list[ResourceSchema] | None = None
    estimated_time: EstimatedTime | None = None
    difficulty: Difficulty | None = None
    prerequisites: list[str] | None = None
    skills: list[str] | None = None
    is_completed: bool = False
    completed_at: datetime | None = None


class RoadmapMetadataSchema(CamelModel):
    generated_by: GeneratedBy = "user"
    ai_model: str | None = None
    prompt: str | None = None


def resolve_step_id(step: StepSchema, index: int) -> str:
    """Id a step is stored under; unnamed steps get ``step-{n}`` (1-based)."""
    return step.id or f"step-{index + 1}"


class RoadmapCreate(CamelModel):
    """Create or fully replace a roadmap."""

    title: Title
    description: Description | None = None
    topic: RequiredText
    difficulty: Difficulty | None = None
    estimated_duration: EstimatedTime | None = None
    steps: list[StepSchema] = Field(min_length=1)
    tags: list[str] | None = None
    is_public: bool | None = None
    metadata: RoadmapMetadataSchema | None = None

    @field_validator("steps")
    @classmethod
    def unique_step_ids(cls, v: list[StepSchema]) -> list[StepSchema]:
        seen: set[str] = set()
        for i, step in enumerate(v):
            sid = resolve_step_id(step, i)
            if sid in seen:
                raise ValueError(f"Duplicate step id: {sid}")
            seen.add(sid)
        return v

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return [t.strip().lower() for t in v if t and t.strip()]


class StepCompletionRequest(CamelModel):
    is_completed: bool


class RoadmapListQuery(CamelModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=50)
    search: str | None = None
    difficulty: Difficulty | None = None
    tags: str | None = None

    @property
    def tag_list(self) -> list[str]:
        if not self.tags:
            return []
        return [t.strip().lower() for t in self.tags.split(",") if t.strip()]


# ============================================================================
# Responses
# ============================================================================


class StepResponse(CamelModel):
    id: str
    title: str
    description: str = ""
    resources: list[ResourceSchema] = []
    estimated_time: EstimatedTime
    difficulty: Difficulty = "intermediate"
    prerequisites: list[str] = []
    skills: list[str] = []
    is_completed: bool = False
    completed_at: datetime | None = None
    order: int


class ProgressResponse(CamelModel):
    completed_steps: int = 0
    total_steps: int = 0
    percentage: int = 0
    last_updated: datetime | None = None


class OwnerSummary(CamelModel):
    id: int
    username: str
    avatar: str | None = None


class RoadmapMetadataResponse(CamelModel):
    generated_by: GeneratedBy = "user"
    ai_model: str | None = None
    prompt: str | None = None
    version: int = 1


class RoadmapResponse(CamelModel):
    id: int
    title: str
    description: str
    topic: str
    difficulty: Difficulty
    estimated_duration: dict[str, Any]
    steps: list[StepResponse]
    tags: list[str]
    is_public: bool
    created_by: OwnerSummary | int
    shared_with: list[dict[str, Any]]
    likes: list[int]
    like_count: int
    forks: list[dict[str, Any]]
    progress: ProgressResponse
    metadata: RoadmapMetadataResponse
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, roadmap: "Roadmap", owner: "User | None" = None) -> "RoadmapResponse":
        return cls(
            id=roadmap.id,
            title=roadmap.title,
            description=roadmap.description or "",
            topic=roadmap.topic,
            difficulty=roadmap.difficulty,
            estimated_duration=roadmap.estimated_duration or {},
            steps=[StepResponse.model_validate(s) for s in roadmap.steps or []],
            tags=list(roadmap.tags or []),
            is_public=roadmap.is_public,
            created_by=(
                OwnerSummary(id=owner.id, username=owner.username, avatar=owner.avatar)
                if owner
                else roadmap.created_by
            ),
            shared_with=list(roadmap.shared_with or []),
            likes=list(roadmap.likes or []),
            like_count=roadmap.like_count,
            forks=list(roadmap.forks or []),
            progress=ProgressResponse.model_validate(roadmap.progress or {}),
            metadata=RoadmapMetadataResponse.model_validate(roadmap.meta or {}),
            created_at=roadmap.created_at,
            updated_at=roadmap.updated_at,
        )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
