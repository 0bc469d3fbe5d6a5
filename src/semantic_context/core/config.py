"""Configuration management."""

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Feature switches
    enable_database: bool = True
    enable_semantic_search: bool = True
    require_embeddings: bool = Field(
        default=False,
        description="Fall back to simple mode when the embedding probe fails instead of ranking lexically",
    )

    # Message store
    store_backend: Literal["neo4j", "memory"] = "neo4j"

    # Neo4j
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: SecretStr = SecretStr("password")
    neo4j_database: str | None = None
    neo4j_pool_size: int = 50

    # Embeddings
    voyage_api_key: SecretStr = SecretStr("")
    voyage_model: str = "voyage-3"
    embedding_dimensions: int | None = Field(default=None, description="Override the model dimension table")

    # Timeouts (seconds)
    embedding_timeout_seconds: float = Field(default=10.0, gt=0)
    store_timeout_seconds: float = Field(default=5.0, gt=0)
    retrieval_timeout_seconds: float = Field(default=15.0, gt=0)

    # Retrieval
    candidate_pool_size: int = Field(default=200, ge=1)
    default_top_k: int = Field(default=10, ge=1)

    # Circuit breaker for the embedding API
    circuit_failure_threshold: int = Field(default=3, ge=1)
    circuit_recovery_timeout: float = Field(default=30.0, ge=0)

    debug: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # Ignore extra fields in .env file
    )


settings = Settings()
