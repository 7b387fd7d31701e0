"""Roadmap generation: templates, custom topic lists and LLM completions."""

from app.generator.convert import graph_to_roadmap_payload
from app.generator.custom import create_custom_roadmap
from app.generator.models import GenerateRequest, GraphEdge, GraphNode, RoadmapGraph
from app.generator.parser import ParsedRoadmap, ParseFailure, parse_roadmap_response
from app.generator.pipeline import RoadmapGenerationPipeline
from app.generator.providers import LLMProviderConfig, get_chat_model
from app.generator.service import RoadmapGeneratorService

__all__ = [
    "GenerateRequest",
    "GraphEdge",
    "GraphNode",
    "LLMProviderConfig",
    "ParseFailure",
    "ParsedRoadmap",
    "RoadmapGenerationPipeline",
    "RoadmapGeneratorService",
    "RoadmapGraph",
    "create_custom_roadmap",
    "get_chat_model",
    "graph_to_roadmap_payload",
    "parse_roadmap_response",
]
