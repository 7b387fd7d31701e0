"""Generator request schemas."""

from typing import Annotated

from pydantic import Field, StringConstraints

from app.generator.models import GenerateRequest
from app.generator.providers import LLMProviderConfig
from app.schemas.common import CamelModel


class TemplateGenerateRequest(GenerateRequest):
    """Template mode; without ``templateId`` the topic picks the template."""

    template_id: str | None = None


class CustomGenerateRequest(CamelModel):
    title: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    description: str = ""
    topics: list[str] = Field(min_length=1)


class AIGenerateRequest(GenerateRequest):
    llm: LLMProviderConfig
