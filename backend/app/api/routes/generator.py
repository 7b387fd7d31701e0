"""Roadmap generation API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request

from app.api.deps import DBSession
from app.core.auth import authenticate_request
from app.core.logging import get_logger
from app.generator import RoadmapGeneratorService, RoadmapGraph, graph_to_roadmap_payload
from app.generator.prompts import build_roadmap_prompt
from app.models import User
from app.schemas.generator import (
    AIGenerateRequest,
    CustomGenerateRequest,
    TemplateGenerateRequest,
)
from app.schemas.roadmap import RoadmapCreate, RoadmapResponse
from app.services import roadmap_service

logger = get_logger(__name__)
router = APIRouter(prefix="/generator", tags=["generator"])


def get_generator_service(request: Request) -> RoadmapGeneratorService:
    return request.app.state.generator_service


GeneratorService = Annotated[RoadmapGeneratorService, Depends(get_generator_service)]
Authorization = Annotated[str | None, Header()]


async def _saving_user(save: bool, authorization: str | None, db: DBSession) -> User | None:
    """Saving a generated roadmap needs a logged-in caller; checked before generating."""
    if not save:
        return None
    ctx = await authenticate_request(authorization, db)
    return ctx.user


async def _respond(
    graph: RoadmapGraph,
    owner: User | None,
    db: DBSession,
    payload: RoadmapCreate | None = None,
) -> dict:
    body: dict = {"roadmap": graph.model_dump(mode="json", by_alias=True)}
    if owner is None:
        return body

    saved = await roadmap_service.create_roadmap(
        db, owner, payload or graph_to_roadmap_payload(graph)
    )
    body["saved"] = RoadmapResponse.from_model(saved, owner).to_json()
    return body


@router.get("/templates")
async def list_templates(service: GeneratorService) -> dict:
    return {
        "templates": [
            t.model_dump(mode="json", by_alias=True) for t in service.list_templates()
        ]
    }


@router.post("/template")
async def generate_from_template(
    data: TemplateGenerateRequest,
    service: GeneratorService,
    db: DBSession,
    save: bool = False,
    authorization: Authorization = None,
) -> dict:
    owner = await _saving_user(save, authorization, db)
    graph = service.generate_template(data, data.template_id)
    return await _respond(graph, owner, db)


@router.post("/custom")
async def generate_custom(
    data: CustomGenerateRequest,
    service: GeneratorService,
    db: DBSession,
    save: bool = False,
    authorization: Authorization = None,
) -> dict:
    owner = await _saving_user(save, authorization, db)
    graph = service.generate_custom(data.title, data.description, data.topics)
    return await _respond(graph, owner, db)


@router.post("/ai")
async def generate_ai(
    data: AIGenerateRequest,
    service: GeneratorService,
    db: DBSession,
    save: bool = False,
    authorization: Authorization = None,
) -> dict:
    """Generate through the caller's own LLM provider and key."""
    owner = await _saving_user(save, authorization, db)
    graph = await service.generate_ai(data, data.llm)

    payload = None
    if owner is not None:
        payload = graph_to_roadmap_payload(
            graph,
            topic=data.topic,
            ai_model=data.llm.model_name(),
            prompt=build_roadmap_prompt(data),
        )
    return await _respond(graph, owner, db, payload)
