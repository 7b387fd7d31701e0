"""Tests for turning model completions into roadmap graphs."""

import json

import pytest

from app.generator.models import GenerateRequest
from app.generator.parser import (
    ParsedRoadmap,
    ParseFailure,
    grid_position,
    parse_roadmap_response,
)


@pytest.fixture
def request_() -> GenerateRequest:
    return GenerateRequest(topic="Rust", difficulty="advanced", duration="long", focus=["async"])


def _parse(payload, request) -> ParsedRoadmap:
    text = payload if isinstance(payload, str) else json.dumps(payload)
    result = parse_roadmap_response(text, request, "openai")
    assert isinstance(result, ParsedRoadmap), result
    return result


class TestFailures:
    def test_not_json(self, request_):
        result = parse_roadmap_response("Sorry, I can't do that.", request_)
        assert isinstance(result, ParseFailure)
        assert "no valid JSON" in result.reason
        assert result.preview.startswith("Sorry")

    def test_missing_nodes(self, request_):
        result = parse_roadmap_response('{"title": "x"}', request_)
        assert isinstance(result, ParseFailure)
        assert result.reason == "Invalid roadmap structure: missing nodes array"

    def test_nodes_not_a_list(self, request_):
        result = parse_roadmap_response('{"nodes": {"a": 1}}', request_)
        assert isinstance(result, ParseFailure)

    def test_empty_nodes(self, request_):
        result = parse_roadmap_response('{"nodes": []}', request_)
        assert isinstance(result, ParseFailure)

    def test_empty_completion(self, request_):
        assert isinstance(parse_roadmap_response("", request_), ParseFailure)


class TestNodeDefaults:
    def test_bare_nodes_get_defaults(self, request_):
        result = _parse({"nodes": [{}, {"data": {}}]}, request_)
        first, second = result.graph.nodes

        assert first.id == "node-0"
        assert second.id == "node-1"
        assert first.type == "topic"
        assert first.data.label == "Topic 1"
        assert second.data.label == "Topic 2"
        assert first.data.description == "Learning topic"
        assert first.data.content == "Detailed content will be provided here."
        assert first.data.resources == []
        assert first.data.difficulty == "advanced"
        assert first.data.estimated_time == "1 week"

    def test_status_always_pending(self, request_):
        result = _parse({"nodes": [{"id": "a", "data": {"status": "done"}}]}, request_)
        assert result.graph.nodes[0].data.status == "pending"

    def test_unknown_type_becomes_topic(self, request_):
        result = _parse({"nodes": [{"id": "a", "type": "boss-fight"}]}, request_)
        assert result.graph.nodes[0].type == "topic"

    def test_known_fields_kept(self, request_):
        node = {
            "id": "ownership",
            "type": "milestone",
            "position": {"x": 100, "y": 300},
            "data": {
                "label": "Ownership",
                "description": "Borrowing rules",
                "difficulty": "intermediate",
                "estimatedTime": "2 weeks",
                "resources": [
                    {"title": "The Book", "url": "https://doc.rust-lang.org/book/", "free": True},
                    {"title": "no url"},
                ],
            },
        }
        parsed = _parse({"nodes": [node]}, request_).graph.nodes[0]
        assert parsed.id == "ownership"
        assert parsed.type == "milestone"
        assert (parsed.position.x, parsed.position.y) == (100, 300)
        assert parsed.data.difficulty == "intermediate"
        assert parsed.data.estimated_time == "2 weeks"
        assert [r.title for r in parsed.data.resources] == ["The Book"]

    def test_duplicate_ids_made_unique(self, request_):
        result = _parse({"nodes": [{"id": "a"}, {"id": "a"}, {"id": "b"}]}, request_)
        ids = [n.id for n in result.graph.nodes]
        assert len(set(ids)) == 3
        assert ids[0] == "a"
        assert ids[1] == "a-1"


class TestPositions:
    def test_clamped_to_canvas(self, request_):
        result = _parse(
            {"nodes": [{"id": "a", "position": {"x": -50, "y": 99999}}]}, request_
        )
        position = result.graph.nodes[0].position
        assert (position.x, position.y) == (0, 2000)

    @pytest.mark.parametrize(
        "position",
        [None, "top-left", {"x": "10", "y": 20}, {"x": 10}, {"x": True, "y": 5}],
    )
    def test_grid_fallback(self, request_, position):
        nodes = [{"id": f"n{i}"} for i in range(4)] + [{"id": "x", "position": position}]
        result = _parse({"nodes": nodes}, request_)
        assert result.graph.nodes[4].position == grid_position(4)

    def test_grid_layout(self):
        assert (grid_position(0).x, grid_position(0).y) == (100, 100)
        assert (grid_position(2).x, grid_position(2).y) == (700, 100)
        assert (grid_position(4).x, grid_position(4).y) == (400, 300)


class TestEdges:
    def test_valid_edges_kept(self, request_):
        result = _parse(
            {
                "nodes": [{"id": "a"}, {"id": "b"}, {"id": "c"}],
                "edges": [
                    {"id": "e1", "source": "a", "target": "b", "type": "straight"},
                    {"id": "e2", "source": "a", "target": "c", "type": "curvy"},
                ],
            },
            request_,
        )
        assert not result.sequential_edges
        edges = result.graph.edges
        assert [(e.source, e.target) for e in edges] == [("a", "b"), ("a", "c")]
        assert edges[0].type == "straight"
        assert edges[1].type == "smoothstep"

    def test_dangling_and_self_edges_dropped(self, request_):
        result = _parse(
            {
                "nodes": [{"id": "a"}, {"id": "b"}],
                "edges": [
                    {"source": "a", "target": "ghost"},
                    {"source": "b", "target": "b"},
                    {"source": ["a"], "target": "b"},
                    {"source": "a", "target": "b"},
                ],
            },
            request_,
        )
        assert [(e.source, e.target) for e in result.graph.edges] == [("a", "b")]

    def test_sequential_fallback(self, request_):
        result = _parse(
            {
                "nodes": [{"id": "a"}, {"id": "b"}, {"id": "c"}],
                "edges": [{"source": "a", "target": "nowhere"}],
            },
            request_,
        )
        assert result.sequential_edges
        assert result.warnings
        assert [(e.id, e.source, e.target) for e in result.graph.edges] == [
            ("edge-0", "a", "b"),
            ("edge-1", "b", "c"),
        ]

    def test_edges_point_at_realized_ids(self, request_):
        """Every edge endpoint exists among the parsed nodes."""
        result = _parse(
            {
                "nodes": [{"id": "a"}, {"id": "a"}, {}],
                "edges": [{"source": "a", "target": "node-2"}],
            },
            request_,
        )
        ids = {n.id for n in result.graph.nodes}
        for edge in result.graph.edges:
            assert edge.source in ids
            assert edge.target in ids
            assert edge.source != edge.target


class TestGraph:
    def test_metadata_and_defaults(self, request_):
        result = _parse('```json\n{"nodes": [{"id": "a"}]}\n```', request_)
        graph = result.graph
        assert graph.title == "Rust Learning Roadmap"
        assert graph.description == "A comprehensive learning path for Rust"
        assert graph.id.startswith("roadmap-")
        assert graph.metadata.generated_by == "llm-api"
        assert graph.metadata.provider == "openai"
        assert graph.metadata.difficulty == "advanced"
        assert graph.metadata.duration == "long"
        assert graph.metadata.focus == ["async"]

    def test_title_from_payload(self, request_):
        result = _parse({"title": "Rustacean path", "nodes": [{"id": "a"}]}, request_)
        assert result.graph.title == "Rustacean path"
