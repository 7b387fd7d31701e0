"""LangGraph pipeline for AI roadmap generation.

Flow:
1. build_prompt - render the prompt from the request
2. complete - one round trip to the provider's chat model
3. [conditional] -> parse (completion received)
               -> END (provider call failed)
4. parse - completion text to ParsedRoadmap | ParseFailure

Failures are terminal: there is no retry.
"""

from collections.abc import Callable
from typing import Any, TypedDict

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from app.core.errors import GenerationError
from app.core.logging import get_logger
from app.generator.models import GenerateRequest, RoadmapGraph
from app.generator.parser import ParsedRoadmap, ParseFailure, ParseResult, parse_roadmap_response
from app.generator.prompts import SYSTEM_PROMPT, build_roadmap_prompt
from app.generator.providers import LLMProviderConfig, get_chat_model

logger = get_logger(__name__)

ModelFactory = Callable[[LLMProviderConfig], BaseChatModel]


class GenerationState(TypedDict, total=False):
    request: GenerateRequest
    config: LLMProviderConfig
    prompt: str
    completion: str
    result: ParseResult
    error: str | None


def _message_text(content: Any) -> str:
    """Flatten a chat message's content (plain string or content blocks)."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return str(content or "")


class RoadmapGenerationPipeline:
    """prompt -> complete -> parse, compiled once per instance."""

    def __init__(self, model_factory: ModelFactory = get_chat_model) -> None:
        self._model_factory = model_factory
        self._graph = self._build()

    def _build(self) -> CompiledStateGraph:
        workflow = StateGraph(GenerationState)

        workflow.add_node("build_prompt", self._build_prompt_node)
        workflow.add_node("complete", self._complete_node)
        workflow.add_node("parse", self._parse_node)

        workflow.set_entry_point("build_prompt")
        workflow.add_edge("build_prompt", "complete")
        workflow.add_conditional_edges(
            "complete",
            lambda state: "END" if state.get("error") else "parse",
            {"END": END, "parse": "parse"},
        )
        workflow.add_edge("parse", END)

        return workflow.compile()

    async def _build_prompt_node(self, state: GenerationState) -> dict[str, Any]:
        return {"prompt": build_roadmap_prompt(state["request"]), "error": None}

    async def _complete_node(self, state: GenerationState) -> dict[str, Any]:
        config = state["config"]
        try:
            model = self._model_factory(config)
            response = await model.ainvoke(
                [SystemMessage(content=SYSTEM_PROMPT), HumanMessage(content=state["prompt"])]
            )
        except Exception as e:
            logger.error("LLM call failed", provider=config.provider, error=str(e))
            return {"error": str(e)}

        completion = _message_text(response.content)
        logger.info("LLM completion received", provider=config.provider, length=len(completion))
        return {"completion": completion}

    async def _parse_node(self, state: GenerationState) -> dict[str, Any]:
        result = parse_roadmap_response(
            state.get("completion"), state["request"], state["config"].provider
        )
        if isinstance(result, ParseFailure):
            logger.warning("LLM response rejected", reason=result.reason, preview=result.preview)
        return {"result": result}

    async def run(self, request: GenerateRequest, config: LLMProviderConfig) -> ParseResult:
        """Run the pipeline and return the raw parse outcome.

        Raises:
            GenerationError: The provider call itself failed.
        """
        state = await self._graph.ainvoke({"request": request, "config": config})
        if state.get("error"):
            raise GenerationError(detail=state["error"])
        return state["result"]

    async def generate(self, request: GenerateRequest, config: LLMProviderConfig) -> RoadmapGraph:
        """Generate a roadmap graph.

        Raises:
            GenerationError: Provider failure or an unusable completion.
        """
        result = await self.run(request, config)
        if isinstance(result, ParsedRoadmap):
            return result.graph
        raise GenerationError(
            "Failed to parse roadmap data from LLM response. The AI response may be malformed.",
            detail=result.reason,
        )
