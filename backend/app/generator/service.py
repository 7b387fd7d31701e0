"""Single entry point for the three generation modes."""

from app.core.errors import NotFoundError
from app.core.logging import get_logger
from app.generator import templates
from app.generator.custom import create_custom_roadmap
from app.generator.models import GenerateRequest, RoadmapGraph, TemplateSummary
from app.generator.pipeline import RoadmapGenerationPipeline
from app.generator.providers import LLMProviderConfig

logger = get_logger(__name__)


class RoadmapGeneratorService:
    def __init__(self, pipeline: RoadmapGenerationPipeline | None = None) -> None:
        self.pipeline = pipeline or RoadmapGenerationPipeline()

    def list_templates(self) -> list[TemplateSummary]:
        return templates.list_templates()

    def generate_template(
        self, request: GenerateRequest, template_id: str | None = None
    ) -> RoadmapGraph:
        """Instantiate a template by id, or by keyword match on the topic."""
        if template_id is None:
            return templates.generate_from_topic(request)

        graph = templates.instantiate(template_id, request)
        if graph is None:
            raise NotFoundError(f"Template '{template_id}' not found", code="TEMPLATE_NOT_FOUND")
        return graph

    def generate_custom(self, title: str, description: str, topics: list[str]) -> RoadmapGraph:
        graph = create_custom_roadmap(title, description, topics)
        logger.info("Custom roadmap built", topics=len(graph.nodes))
        return graph

    async def generate_ai(
        self, request: GenerateRequest, config: LLMProviderConfig
    ) -> RoadmapGraph:
        graph = await self.pipeline.generate(request, config)
        logger.info(
            "AI roadmap generated",
            provider=config.provider,
            topic=request.topic,
            nodes=len(graph.nodes),
            edges=len(graph.edges),
        )
        return graph
