"""LLM provider configuration.

The provider and key are supplied per call; nothing here is cached or
held globally.
"""

from langchain_core.language_models.chat_models import BaseChatModel
from pydantic import Field, SecretStr

from app.core.config import get_settings
from app.core.logging import get_logger
from app.generator.models import ProviderName
from app.schemas.common import CamelModel

logger = get_logger(__name__)


class LLMProviderConfig(CamelModel):
    provider: ProviderName
    api_key: SecretStr = Field(min_length=1)
    model: str | None = None

    def model_name(self) -> str:
        if self.model:
            return self.model
        settings = get_settings()
        return {
            "openai": settings.OPENAI_MODEL,
            "anthropic": settings.ANTHROPIC_MODEL,
            "gemini": settings.GEMINI_MODEL,
        }[self.provider]


def get_chat_model(config: LLMProviderConfig) -> BaseChatModel:
    """Build a langchain chat model for the configured provider."""
    settings = get_settings()
    model = config.model_name()
    api_key = config.api_key.get_secret_value()
    logger.info("Initializing LLM", provider=config.provider, model=model)

    if config.provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=model,
            api_key=api_key,
            temperature=settings.LLM_TEMPERATURE,
            max_tokens=settings.LLM_MAX_TOKENS,
        )

    if config.provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(
            model=model,
            api_key=api_key,
            temperature=settings.LLM_TEMPERATURE,
            max_tokens=settings.LLM_MAX_TOKENS,
        )

    if config.provider == "gemini":
        from langchain_google_genai import ChatGoogleGenerativeAI

        return ChatGoogleGenerativeAI(
            model=model,
            google_api_key=api_key,
            temperature=settings.LLM_TEMPERATURE,
            max_output_tokens=settings.LLM_MAX_TOKENS,
        )

    raise ValueError(f"Unsupported LLM provider: {config.provider}")
