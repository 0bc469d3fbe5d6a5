"""Neo4j driver construction."""

from neo4j import AsyncDriver, AsyncGraphDatabase

from semantic_context.core.config import Settings, settings
from semantic_context.core.logging import get_logger

logger = get_logger(__name__)


def create_neo4j_driver(
    config: Settings | None = None,
    max_connection_lifetime: int = 3600,
) -> AsyncDriver:
    """Create a Neo4j async driver from settings.

    The driver connects lazily; call ``verify_connectivity`` (or the
    repository's ``check_connection``) to find out whether the server is up.

    Args:
        config: Settings to read the connection details from
        max_connection_lifetime: Maximum lifetime of connections in seconds

    Returns:
        AsyncDriver: Unconnected Neo4j driver
    """
    config = config or settings

    logger.info(
        "Creating Neo4j driver",
        uri=config.neo4j_uri,
        pool_size=config.neo4j_pool_size,
        connection_lifetime=max_connection_lifetime,
    )

    return AsyncGraphDatabase.driver(
        config.neo4j_uri,
        auth=(config.neo4j_user, config.neo4j_password.get_secret_value()),
        max_connection_pool_size=config.neo4j_pool_size,
        max_connection_lifetime=max_connection_lifetime,
    )
