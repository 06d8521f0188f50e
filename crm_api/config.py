from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://localhost:5432/crm"

    @field_validator('DATABASE_URL', mode='before')
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        """Convert postgresql:// to postgresql+asyncpg:// for async support."""
        if v and v.startswith('postgresql://'):
            return v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v

    # CORS
    FRONTEND_URL: str = "http://localhost:3000"

    # GraphQL
    GRAPHIQL_ENABLED: bool = True
    DEFAULT_PER_PAGE: int = 20
    MAX_PER_PAGE: int = 500

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    DOCS_ENABLED: bool = True
    LOG_LEVEL: str | None = None

    class Config:
        env_file = ".env"
        case_sensitive = True

    @model_validator(mode='after')
    def enforce_production_defaults(self) -> "Settings":
        """Debug output and GraphiQL are never exposed in production."""
        if self.is_production:
            self.DEBUG = False
            self.GRAPHIQL_ENABLED = False
        if self.DEFAULT_PER_PAGE > self.MAX_PER_PAGE:
            raise ValueError("DEFAULT_PER_PAGE must not exceed MAX_PER_PAGE")
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT in ("production", "staging")

    @property
    def sqlalchemy_echo(self) -> bool:
        """SQL echo only in local debugging, never in production."""
        return self.DEBUG and not self.is_production


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
