"""Roadmaps built directly from a user's ordered topic list."""

import time
from datetime import UTC, datetime

from app.core.errors import ValidationFailed
from app.generator.models import (
    GraphEdge,
    GraphMetadata,
    GraphNode,
    NodeData,
    Position,
    RoadmapGraph,
)


def create_custom_roadmap(title: str, description: str, topics: list[str]) -> RoadmapGraph:
    """One node per topic, stacked vertically and chained in order.

    Raises:
        ValidationFailed: No non-blank topics were given.
    """
    topics = [t.strip() for t in topics if t and t.strip()]
    if not topics:
        raise ValidationFailed("At least one topic is required", code="NO_TOPICS")

    nodes = [
        GraphNode(
            id=f"topic-{i}",
            type="topic",
            position=Position(x=250, y=50 + i * 150),
            data=NodeData(
                label=topic,
                description=f"Learn about {topic}",
                content=(
                    f"This section covers {topic}. "
                    "You'll learn the fundamentals and practical applications."
                ),
                resources=[],
                status="pending",
                difficulty="intermediate",
                estimated_time="2-3 weeks",
            ),
            style={
                "backgroundColor": f"hsl({i * 60}, 60%, 90%)",
                "borderColor": f"hsl({i * 60}, 60%, 60%)",
            },
        )
        for i, topic in enumerate(topics)
    ]
    edges = [
        GraphEdge(id=f"e-{i}", source=f"topic-{i}", target=f"topic-{i + 1}", type="smoothstep")
        for i in range(len(nodes) - 1)
    ]

    now = datetime.now(UTC)
    return RoadmapGraph(
        id=f"custom-{int(time.time() * 1000)}",
        title=title,
        description=description,
        category="Custom",
        estimated_duration=f"{len(topics) * 2}-{len(topics) * 4} weeks",
        nodes=nodes,
        edges=edges,
        metadata=GraphMetadata(
            author="User",
            version="1.0.0",
            created_at=now,
            updated_at=now,
            tags=["custom"],
            generated_by="user",
        ),
    )
