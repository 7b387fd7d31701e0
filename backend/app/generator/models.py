"""Roadmap graph types shared by the generators and the UI layer."""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from app.schemas.common import CamelModel, Difficulty

NodeType = Literal["topic", "subtopic", "milestone", "optional", "prerequisite"]
NodeStatus = Literal["pending", "learning", "done", "skipped"]
EdgeType = Literal["default", "smoothstep", "straight"]
Duration = Literal["short", "medium", "long"]
ProviderName = Literal["gemini", "openai", "anthropic"]

NODE_TYPES: tuple[str, ...] = ("topic", "subtopic", "milestone", "optional", "prerequisite")
EDGE_TYPES: tuple[str, ...] = ("default", "smoothstep", "straight")
DIFFICULTIES: tuple[str, ...] = ("beginner", "intermediate", "advanced")


class Position(CamelModel):
    x: float
    y: float


class ResourceLink(CamelModel):
    id: str | None = None
    title: str
    url: str
    type: str = "article"
    free: bool | None = None
    difficulty: Difficulty | None = None


class NodeData(CamelModel):
    label: str
    description: str = ""
    content: str = ""
    resources: list[ResourceLink] = Field(default_factory=list)
    status: NodeStatus = "pending"
    difficulty: Difficulty = "intermediate"
    estimated_time: str | None = None


class GraphNode(CamelModel):
    id: str
    type: NodeType = "topic"
    position: Position
    data: NodeData
    style: dict[str, Any] = Field(default_factory=dict)


class GraphEdge(CamelModel):
    id: str
    source: str
    target: str
    type: EdgeType = "smoothstep"
    animated: bool | None = None
    style: dict[str, Any] | None = None


class GraphMetadata(CamelModel):
    author: str | None = None
    version: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    generated_by: str | None = None
    provider: ProviderName | None = None
    difficulty: Difficulty | None = None
    duration: Duration | None = None
    focus: list[str] | None = None


class RoadmapGraph(CamelModel):
    """A roadmap as a node/edge graph for layout and interaction."""

    id: str
    title: str
    description: str = ""
    category: str | None = None
    estimated_duration: str | None = None
    nodes: list[GraphNode]
    edges: list[GraphEdge] = Field(default_factory=list)
    metadata: GraphMetadata = Field(default_factory=GraphMetadata)

    def node(self, node_id: str) -> GraphNode | None:
        return next((n for n in self.nodes if n.id == node_id), None)


class GenerateRequest(CamelModel):
    topic: str = Field(min_length=1)
    difficulty: Difficulty = "beginner"
    duration: Duration = "medium"
    focus: list[str] | None = None
    custom_requirements: str | None = None


class TemplateSummary(CamelModel):
    id: str
    name: str
    description: str
    category: str
    difficulty: Difficulty
    estimated_duration: str
