"""Turn a model completion into a RoadmapGraph.

The completion is untrusted: every node field is defaulted, positions are
clamped onto the canvas, ids are made unique, and edges are checked against
the nodes that were actually produced. The result is either a
``ParsedRoadmap`` or a ``ParseFailure``; this module never raises for bad
model output.
"""

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from app.core.logging import get_logger
from app.generator.llm_utils import parse_llm_json_response
from app.generator.models import (
    DIFFICULTIES,
    EDGE_TYPES,
    NODE_TYPES,
    GenerateRequest,
    GraphEdge,
    GraphMetadata,
    GraphNode,
    NodeData,
    Position,
    ProviderName,
    ResourceLink,
    RoadmapGraph,
)

logger = get_logger(__name__)

X_RANGE = (0.0, 1000.0)
Y_RANGE = (0.0, 2000.0)


@dataclass(frozen=True)
class ParsedRoadmap:
    graph: RoadmapGraph
    sequential_edges: bool = False
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ParseFailure:
    reason: str
    preview: str = ""


ParseResult = ParsedRoadmap | ParseFailure


def grid_position(index: int) -> Position:
    """Fallback layout: three columns, 300px apart, rows 200px apart."""
    return Position(x=(index % 3) * 300 + 100, y=(index // 3) * 200 + 100)


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return max(low, min(high, float(value)))


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default


def _position(raw: Any, index: int) -> Position:
    if isinstance(raw, dict) and _is_number(raw.get("x")) and _is_number(raw.get("y")):
        return Position(x=_clamp(raw["x"], X_RANGE), y=_clamp(raw["y"], Y_RANGE))
    return grid_position(index)


def _resources(raw: Any) -> list[ResourceLink]:
    if not isinstance(raw, list):
        return []
    links = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        title, url = item.get("title"), item.get("url")
        if not (isinstance(title, str) and isinstance(url, str)):
            continue
        links.append(
            ResourceLink(
                id=item["id"] if isinstance(item.get("id"), str) else None,
                title=title,
                url=url,
                type=_text(item.get("type"), "article"),
                free=item["free"] if isinstance(item.get("free"), bool) else None,
                difficulty=item.get("difficulty") if item.get("difficulty") in DIFFICULTIES else None,
            )
        )
    return links


def _raw_id(raw: dict[str, Any]) -> str | None:
    value = raw.get("id")
    if isinstance(value, str) and value.strip():
        return value.strip()
    if _is_number(value):
        return str(value)
    return None


def normalize_nodes(raw_nodes: list[Any], request: GenerateRequest) -> list[GraphNode]:
    nodes: list[GraphNode] = []
    seen: set[str] = set()

    for index, raw in enumerate(raw_nodes):
        raw = raw if isinstance(raw, dict) else {}
        data = raw.get("data") if isinstance(raw.get("data"), dict) else {}

        node_id = _raw_id(raw) or f"node-{index}"
        if node_id in seen:
            suffix = index
            while f"{node_id}-{suffix}" in seen:
                suffix += 1
            node_id = f"{node_id}-{suffix}"
        seen.add(node_id)

        difficulty = data.get("difficulty")
        nodes.append(
            GraphNode(
                id=node_id,
                type=raw.get("type") if raw.get("type") in NODE_TYPES else "topic",
                position=_position(raw.get("position"), index),
                data=NodeData(
                    label=_text(data.get("label"), f"Topic {index + 1}"),
                    description=_text(data.get("description"), "Learning topic"),
                    content=_text(data.get("content"), "Detailed content will be provided here."),
                    resources=_resources(data.get("resources")),
                    status="pending",
                    difficulty=difficulty if difficulty in DIFFICULTIES else request.difficulty,
                    estimated_time=_text(data.get("estimatedTime"), "1 week"),
                ),
                style=raw["style"] if isinstance(raw.get("style"), dict) else {},
            )
        )
    return nodes


def sequential_edges(nodes: list[GraphNode]) -> list[GraphEdge]:
    """Chain every node to the next one, in order."""
    return [
        GraphEdge(id=f"edge-{i}", source=nodes[i].id, target=nodes[i + 1].id, type="smoothstep")
        for i in range(len(nodes) - 1)
    ]


def validate_edges(raw_edges: Any, nodes: list[GraphNode]) -> list[GraphEdge]:
    """Keep edges whose endpoints are distinct, realized node ids."""
    if not isinstance(raw_edges, list):
        return []

    node_ids = {n.id for n in nodes}
    edges: list[GraphEdge] = []
    edge_ids: set[str] = set()
    for index, raw in enumerate(raw_edges):
        if not isinstance(raw, dict):
            continue
        source, target = raw.get("source"), raw.get("target")
        if not (isinstance(source, str) and isinstance(target, str)):
            continue
        if source not in node_ids or target not in node_ids or source == target:
            continue

        edge_id = _raw_id(raw) or f"edge-{index}"
        if edge_id in edge_ids:
            edge_id = f"edge-{index}"
        edge_ids.add(edge_id)

        edges.append(
            GraphEdge(
                id=edge_id,
                source=source,
                target=target,
                type=raw.get("type") if raw.get("type") in EDGE_TYPES else "smoothstep",
            )
        )
    return edges


def parse_roadmap_response(
    text: str | None,
    request: GenerateRequest,
    provider: ProviderName | None = None,
) -> ParseResult:
    """Parse a completion into a graph, or explain why it can't be."""
    preview = (text or "")[:200]
    try:
        payload = parse_llm_json_response(text)
    except ValueError as e:
        return ParseFailure(reason=str(e), preview=preview)

    if not isinstance(payload, dict) or not isinstance(payload.get("nodes"), list):
        return ParseFailure(
            reason="Invalid roadmap structure: missing nodes array", preview=preview
        )
    if not payload["nodes"]:
        return ParseFailure(reason="Invalid roadmap structure: empty nodes array", preview=preview)

    warnings: list[str] = []
    nodes = normalize_nodes(payload["nodes"], request)
    edges = validate_edges(payload.get("edges"), nodes)
    used_fallback = not edges
    if used_fallback:
        warnings.append("No usable edges in response; nodes chained in order")
        edges = sequential_edges(nodes)
        logger.info("Using sequential edges", node_count=len(nodes))

    graph = RoadmapGraph(
        id=f"roadmap-{int(time.time() * 1000)}",
        title=_text(payload.get("title"), f"{request.topic} Learning Roadmap"),
        description=_text(
            payload.get("description"), f"A comprehensive learning path for {request.topic}"
        ),
        nodes=nodes,
        edges=edges,
        metadata=GraphMetadata(
            generated_by="llm-api",
            provider=provider,
            created_at=datetime.now(UTC),
            difficulty=request.difficulty,
            duration=request.duration,
            focus=request.focus,
        ),
    )
    return ParsedRoadmap(graph=graph, sequential_edges=used_fallback, warnings=warnings)
