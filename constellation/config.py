"""
Configuration management for the Constellation Graph backend.

Uses Pydantic Settings to load and validate environment variables from .env file.
All sensitive data (API keys, database ids) are loaded from environment variables
and never hardcoded.
"""

from functools import lru_cache
from typing import Literal, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from constellation.models.schemas import BlendWeights, GraphConfig


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via .env file or environment variables.
    """

    # Application Settings
    app_name: str = Field(
        default="Framing Constellation Backend",
        description="Name of the application"
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version"
    )
    environment: Literal["development", "production", "test"] = Field(
        default="development",
        description="Runtime environment"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )

    # API Settings
    api_prefix: str = Field(
        default="/api",
        description="URL prefix for all API routes"
    )
    cors_origins: Union[str, list[str]] = Field(
        default="http://localhost:5173,http://localhost:3000",
        description="Allowed CORS origins (Vite dev server by default)"
    )

    # Notion Settings (keyword store)
    notion_api_key: str = Field(
        ...,
        description="Notion integration token (REQUIRED)"
    )
    notion_keywords_db_id: str = Field(
        ...,
        description="Notion database id holding the keyword rows (REQUIRED)"
    )
    notion_version: str = Field(
        default="2022-06-28",
        description="Notion-Version header sent with every request"
    )
    notion_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        le=120.0,
        description="HTTP timeout for Notion requests"
    )

    # Graph Engine Settings
    graph_weight_co_occurrence: float = Field(
        default=0.4,
        ge=0.0,
        description="Blend coefficient for co-occurrence evidence"
    )
    graph_weight_semantic: float = Field(
        default=0.15,
        ge=0.0,
        description="Blend coefficient for semantic evidence (reserved, always 0 today)"
    )
    graph_weight_role_prior: float = Field(
        default=0.15,
        ge=0.0,
        description="Blend coefficient for shared artifact role evidence"
    )
    graph_weight_user_history: float = Field(
        default=0.2,
        ge=0.0,
        description="Blend coefficient for user history evidence (reserved)"
    )
    graph_weight_manual: float = Field(
        default=0.1,
        ge=0.0,
        description="Blend coefficient for manual edge evidence (reserved)"
    )
    graph_half_life_days: float = Field(
        default=30.0,
        gt=0.0,
        description="Half-life in days for edge weight decay"
    )
    graph_min_weight: float = Field(
        default=0.05,
        ge=0.0,
        le=1.0,
        description="Edges with a final weight below this are pruned"
    )
    graph_max_degree: int = Field(
        default=8,
        ge=1,
        le=100,
        description="Maximum surviving edges per node"
    )
    graph_role_prior: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Evidence value for node pairs sharing an artifact role"
    )
    graph_default_neighbors: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Neighbors returned when k is not given"
    )

    # Model configuration
    # Load .env from backend dir first, then project root (for monorepo layout)
    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    def graph_config(self) -> GraphConfig:
        """Engine configuration derived from the graph_* settings."""
        return GraphConfig(
            blend=BlendWeights(
                co_occurrence=self.graph_weight_co_occurrence,
                semantic=self.graph_weight_semantic,
                role_prior=self.graph_weight_role_prior,
                user_history=self.graph_weight_user_history,
                manual=self.graph_weight_manual,
            ),
            half_life_days=self.graph_half_life_days,
            min_weight=self.graph_min_weight,
            max_degree=self.graph_max_degree,
            role_prior=self.graph_role_prior,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    This function is cached to avoid re-reading environment variables
    on every call. Use this function to access settings throughout
    the application.

    Returns:
        Settings: The application settings instance
    """
    return Settings()
