"""Translate a roadmap graph into diagram-widget props and route node events."""

from typing import Any, Literal

from app.generator.models import GraphEdge, GraphNode, NodeStatus
from app.ui.store import RoadmapStore

EventKind = Literal["click", "context_menu"]

# Node types that support status toggles; the rest only open the chat.
TOGGLEABLE_TYPES = frozenset({"topic", "optional", "prerequisite"})

DEFAULT_EDGE_STYLE: dict[str, Any] = {"stroke": "#94a3b8", "strokeWidth": 2}


def flow_node(node: GraphNode) -> dict[str, Any]:
    position = node.position.model_dump(mode="json")
    data = node.data.model_dump(mode="json", by_alias=True)
    data.update(id=node.id, type=node.type, position=position, style=node.style)
    return {
        "id": node.id,
        "type": node.type,
        "position": position,
        "data": data,
        "style": node.style,
        "targetPosition": "top",
        "sourcePosition": "bottom",
    }


def flow_edge(edge: GraphEdge) -> dict[str, Any]:
    return {
        "id": edge.id,
        "source": edge.source,
        "target": edge.target,
        "type": edge.type,
        "animated": bool(edge.animated),
        "style": edge.style or DEFAULT_EDGE_STYLE,
    }


class FlowRenderer:
    def __init__(self, store: RoadmapStore) -> None:
        self.store = store

    def nodes(self) -> list[dict[str, Any]]:
        roadmap = self.store.current_roadmap
        return [flow_node(n) for n in roadmap.nodes] if roadmap else []

    def edges(self) -> list[dict[str, Any]]:
        roadmap = self.store.current_roadmap
        return [flow_edge(e) for e in roadmap.edges] if roadmap else []

    def handle_event(self, node_id: str, kind: EventKind, shift: bool = False) -> None:
        """Dispatch a pointer event on a node.

        Plain click opens the chat, right click toggles done, and
        shift-click toggles learning. Toggles only apply to topic-like nodes.
        """
        roadmap = self.store.current_roadmap
        node = roadmap.node(node_id) if roadmap else None
        if node is None:
            return

        if kind == "click" and not shift:
            self.store.open_chat(node)
            return
        if node.type not in TOGGLEABLE_TYPES:
            return

        current = node.data.status
        status: NodeStatus
        if kind == "context_menu":
            status = "pending" if current == "done" else "done"
        else:
            status = "pending" if current == "learning" else "learning"
        self.store.update_node_status(node_id, status)
