"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    APP_NAME: str = "Roadmap Generator"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENV: str = "development"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    FRONTEND_URL: str = "http://localhost:3000"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./roadmaps.db"
    DATABASE_ECHO: bool = False

    # Tokens
    JWT_SECRET: str = "your-fallback-secret-key"
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "roadmap-generator"
    JWT_AUDIENCE: str = "roadmap-generator-users"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    MAX_REFRESH_TOKENS: int = 5
    BCRYPT_ROUNDS: int = 12

    # Rate limiting (fixed window per client IP)
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    RATE_LIMIT_MAX_REQUESTS: int = 100

    # AI
    OPENAI_MODEL: str = "gpt-4o-mini"
    ANTHROPIC_MODEL: str = "claude-3-5-sonnet-latest"
    GEMINI_MODEL: str = "gemini-1.5-flash"
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 3000

    # Chat sidebar
    CHAT_RESPONSE_DELAY_SECONDS: float = 1.0

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENV == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENV == "production"

    @property
    def access_token_expires_in(self) -> str:
        """Access token lifetime in the compact form reported to clients."""
        return f"{self.ACCESS_TOKEN_EXPIRE_DAYS}d"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
