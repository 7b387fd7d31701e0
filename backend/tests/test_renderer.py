"""Tests for diagram props and node event routing."""

import pytest

from app.generator import templates
from app.ui import FlowRenderer, RoadmapStore


@pytest.fixture
def store() -> RoadmapStore:
    store = RoadmapStore(response_delay=0)
    store.set_current_roadmap(templates.instantiate("web-development"))
    return store


@pytest.fixture
def renderer(store: RoadmapStore) -> FlowRenderer:
    return FlowRenderer(store)


def _status(store: RoadmapStore, node_id: str) -> str:
    return store.current_roadmap.node(node_id).data.status


class TestProps:
    def test_node_props(self, renderer: FlowRenderer):
        node = renderer.nodes()[0]
        assert node["id"] == "html-basics"
        assert node["type"] == "topic"
        assert node["position"] == {"x": 250.0, "y": 50.0}
        assert node["targetPosition"] == "top"
        assert node["sourcePosition"] == "bottom"
        assert node["style"] == {"backgroundColor": "#e3f2fd", "borderColor": "#1976d2"}

        data = node["data"]
        assert data["label"] == "HTML Basics"
        assert data["estimatedTime"] == "2-3 weeks"
        assert data["id"] == "html-basics"
        assert data["type"] == "topic"
        assert data["position"] == node["position"]
        assert data["style"] == node["style"]

    def test_edge_props(self, renderer: FlowRenderer):
        edge = renderer.edges()[0]
        assert edge["id"] == "e1"
        assert (edge["source"], edge["target"]) == ("html-basics", "css-basics")
        assert edge["type"] == "smoothstep"
        assert edge["animated"] is False
        assert edge["style"]

    def test_empty_without_roadmap(self):
        renderer = FlowRenderer(RoadmapStore())
        assert renderer.nodes() == []
        assert renderer.edges() == []


class TestEvents:
    def test_click_opens_chat(self, store: RoadmapStore, renderer: FlowRenderer):
        renderer.handle_event("css-basics", "click")
        assert store.is_chat_open
        assert store.active_chat_session.node_id == "css-basics"
        assert _status(store, "css-basics") == "pending"

    def test_right_click_toggles_done(self, store: RoadmapStore, renderer: FlowRenderer):
        renderer.handle_event("css-basics", "context_menu")
        assert _status(store, "css-basics") == "done"
        renderer.handle_event("css-basics", "context_menu")
        assert _status(store, "css-basics") == "pending"

    def test_shift_click_toggles_learning(self, store: RoadmapStore, renderer: FlowRenderer):
        renderer.handle_event("css-basics", "click", shift=True)
        assert _status(store, "css-basics") == "learning"
        assert not store.is_chat_open
        renderer.handle_event("css-basics", "click", shift=True)
        assert _status(store, "css-basics") == "pending"

    def test_right_click_on_learning_node_marks_done(
        self, store: RoadmapStore, renderer: FlowRenderer
    ):
        renderer.handle_event("css-basics", "click", shift=True)
        renderer.handle_event("css-basics", "context_menu")
        assert _status(store, "css-basics") == "done"

    def test_milestone_only_opens_chat(self, store: RoadmapStore, renderer: FlowRenderer):
        renderer.handle_event("fullstack-project", "context_menu")
        renderer.handle_event("fullstack-project", "click", shift=True)
        assert _status(store, "fullstack-project") == "pending"

        renderer.handle_event("fullstack-project", "click")
        assert store.active_chat_session.node_id == "fullstack-project"

    def test_unknown_node(self, store: RoadmapStore, renderer: FlowRenderer):
        renderer.handle_event("ghost", "click")
        assert not store.is_chat_open
