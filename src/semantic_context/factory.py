"""Wiring for the context manager and its collaborators.

Example:
    ```python
    setup_logging()
    manager = create_context_manager()
    await manager.initialize()
    results = await manager.get_relevant_context(text, guild_id, author_id)
    ```
"""

from semantic_context.core.config import Settings, settings
from semantic_context.core.logging import get_logger
from semantic_context.infrastructure.embeddings.voyage import VoyageEmbeddingService
from semantic_context.infrastructure.neo4j.driver import create_neo4j_driver
from semantic_context.infrastructure.repositories.in_memory import InMemoryTurnRepository
from semantic_context.infrastructure.repositories.turns import Neo4jTurnRepository
from semantic_context.services import EmbeddingService, MessageStore
from semantic_context.services.context_manager import SemanticContextManager

logger = get_logger(__name__)


def create_embedding_service(config: Settings | None = None) -> EmbeddingService | None:
    """Voyage embedding service, or None when no API key is configured."""
    config = config or settings
    if not config.voyage_api_key.get_secret_value():
        logger.info("VOYAGE_API_KEY not configured, embeddings disabled")
        return None

    service = VoyageEmbeddingService(config=config)
    logger.info("Created embedding service", model=service.model, dimensions=service.dimensions)
    return service


def create_turn_store(config: Settings | None = None) -> MessageStore:
    """Turn store selected by settings.store_backend."""
    config = config or settings
    if config.store_backend == "memory":
        logger.info("Using in-memory turn store")
        return InMemoryTurnRepository()
    return Neo4jTurnRepository(create_neo4j_driver(config), database=config.neo4j_database)


def create_context_manager(config: Settings | None = None) -> SemanticContextManager:
    """Build an uninitialized context manager from settings."""
    config = config or settings
    return SemanticContextManager(
        store=create_turn_store(config),
        embeddings=create_embedding_service(config),
        config=config,
    )
