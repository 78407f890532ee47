"""
SwarmCast - Core Configuration Module

Centralized configuration management using Pydantic Settings.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMConfig(BaseSettings):
    """Completion-service (Groq) configuration."""

    model_config = SettingsConfigDict(env_prefix="LLM_")

    api_key: str = Field(
        default="",
        description="Groq API key (empty falls back to GROQ_API_KEY)",
    )
    model: str = Field(
        default="llama-3.3-70b-versatile",
        description="Model used for structured JSON calls",
    )
    search_model: str = Field(
        default="groq/compound-mini",
        description="Model with built-in web search for agent analysis",
    )
    timeout_seconds: float = Field(default=60.0, description="Per-call timeout")
    selection_temperature: float = Field(default=0.5)
    analysis_temperature: float = Field(default=0.2)
    consensus_temperature: float = Field(default=0.2)


class SwarmConfig(BaseSettings):
    """Agent swarm execution configuration."""

    model_config = SettingsConfigDict(env_prefix="SWARM_")

    execution_mode: Literal["parallel", "staggered"] = Field(
        default="parallel",
        description="Run agents concurrently or one at a time",
    )
    min_agent_seconds: float = Field(
        default=1.5,
        description="Minimum wall-clock time per agent in staggered mode",
    )
    min_agents: int = Field(default=3, description="Fewest agents to request")
    max_agents: int = Field(default=6, description="Most agents to deploy")
    fallback_agent_count: int = Field(
        default=3,
        description="Catalog prefix used when role selection fails",
    )

    @field_validator("execution_mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    debug: bool = Field(default=True, alias="SWARMCAST_DEBUG")
    log_level: str = Field(default="INFO", alias="SWARMCAST_LOG_LEVEL")

    # Sub-configurations
    llm: LLMConfig = Field(default_factory=LLMConfig)
    swarm: SwarmConfig = Field(default_factory=SwarmConfig)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience alias
settings = get_settings()
