"""Convert generated graphs into savable roadmap payloads."""

from app.generator.models import RoadmapGraph
from app.schemas.roadmap import (
    RoadmapCreate,
    RoadmapMetadataSchema,
    StepSchema,
)

_GENERATED_BY = {"template": "template", "user": "user", "llm-api": "ai"}


def graph_to_roadmap_payload(
    graph: RoadmapGraph,
    topic: str | None = None,
    is_public: bool = False,
    ai_model: str | None = None,
    prompt: str | None = None,
) -> RoadmapCreate:
    """One step per node, in node order; ``done`` nodes become completed steps."""
    steps = [
        StepSchema(
            id=node.id,
            title=node.data.label,
            description=node.data.description,
            resources=[
                {"title": r.title, "url": r.url, "type": r.type}
                if r.type in ("article", "video", "course", "book", "documentation", "tool")
                else {"title": r.title, "url": r.url, "type": "other"}
                for r in node.data.resources
            ],
            difficulty=node.data.difficulty,
            is_completed=node.data.status == "done",
        )
        for node in graph.nodes
    ]
    difficulty = graph.metadata.difficulty or (
        graph.nodes[0].data.difficulty if graph.nodes else None
    )
    return RoadmapCreate(
        title=graph.title[:200],
        description=(graph.description or "")[:1000],
        topic=topic or graph.category or graph.title,
        difficulty=difficulty,
        steps=steps,
        tags=list(graph.metadata.tags),
        is_public=is_public,
        metadata=RoadmapMetadataSchema(
            generated_by=_GENERATED_BY.get(graph.metadata.generated_by or "", "user"),
            ai_model=ai_model,
            prompt=prompt,
        ),
    )
