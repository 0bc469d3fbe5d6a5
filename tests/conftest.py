"""Shared fixtures for the semantic context tests."""

import pytest
from helpers import FakeDriver, FakeEmbeddingService, FakeVoyageClient, FlakyTurnRepository

from semantic_context.core.config import Settings


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        enable_database=True,
        enable_semantic_search=True,
        require_embeddings=False,
        store_backend="memory",
        voyage_api_key="test-key",
        embedding_timeout_seconds=0.2,
        store_timeout_seconds=0.2,
        retrieval_timeout_seconds=0.5,
        candidate_pool_size=50,
        default_top_k=10,
        circuit_failure_threshold=3,
        circuit_recovery_timeout=30.0,
    )


@pytest.fixture
def store() -> FlakyTurnRepository:
    return FlakyTurnRepository()


@pytest.fixture
def embeddings() -> FakeEmbeddingService:
    return FakeEmbeddingService()


@pytest.fixture
def voyage_client() -> FakeVoyageClient:
    return FakeVoyageClient()


@pytest.fixture
def neo4j_driver() -> FakeDriver:
    return FakeDriver()
