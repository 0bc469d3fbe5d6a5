"""Neo4j-backed turn store."""

from datetime import datetime
from typing import Any

from neo4j import AsyncDriver, AsyncSession
from neo4j.exceptions import ConstraintError, DriverError, Neo4jError
from pydantic import ValidationError

from semantic_context.core.base import DatabaseErrorDetails, ErrorLevel
from semantic_context.core.decorators import with_error_handling, with_session
from semantic_context.core.errors import DuplicateTurnError, StoreError, StoreErrorKind
from semantic_context.core.logging import get_logger
from semantic_context.domain.models import StoreStatistics, Turn
from semantic_context.domain.models.turn import TurnBase
from semantic_context.domain.models.utils import to_epoch
from semantic_context.infrastructure.neo4j.queries import TurnQueries

logger = get_logger(__name__)


class Neo4jTurnRepository:
    """Durable turn store on Neo4j.

    Each turn is one ``:Turn`` node with a role label. A uniqueness
    constraint on ``Turn.id`` makes ``append`` write-once; driver failures
    are translated into :class:`StoreError`.
    """

    def __init__(self, driver: AsyncDriver, database: str | None = None):
        self.driver = driver
        self.session_kwargs: dict[str, Any] = {"database": database} if database else {}

    def _unavailable(self, operation: str, error: Exception, record_id: str | None = None) -> StoreError:
        return StoreError(
            message=f"Neo4j {operation} failed: {error!s}",
            kind=StoreErrorKind.UNAVAILABLE,
            details=DatabaseErrorDetails(
                source="Neo4jTurnRepository",
                operation=operation,
                service_name="Neo4j",
                record_id=record_id,
            ),
        )

    @with_session()
    async def _create(self, session: AsyncSession, turn: Turn) -> None:
        result = await session.run(TurnQueries.create_turn(turn.role), properties=turn.to_neo4j_properties())
        await result.consume()

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def append(self, turn: Turn) -> None:
        """Persist a new turn.

        Raises:
            DuplicateTurnError: If a turn with the same id exists
            StoreError: If Neo4j is unreachable or the write fails
        """
        try:
            await self._create(turn)
        except ConstraintError as e:
            raise DuplicateTurnError(turn.id, source="Neo4jTurnRepository") from e
        except (Neo4jError, DriverError) as e:
            raise self._unavailable("append", e, record_id=turn.id) from e
        logger.debug("Turn stored", turn_id=turn.id, role=turn.role)

    @with_session()
    async def _query_scope(
        self,
        session: AsyncSession,
        guild_id: str,
        author_id: str | None,
        limit: int,
        before: datetime | None,
    ) -> list[Turn]:
        params: dict[str, Any] = {"guild_id": guild_id, "limit": limit}
        if author_id is not None:
            params["author_id"] = author_id
        if before is not None:
            params["before"] = to_epoch(before)

        query = TurnQueries.query_scope(with_author=author_id is not None, with_before=before is not None)
        result = await session.run(query, params)
        turns: list[Turn] = []
        async for record in result:
            node = dict(record["t"])
            try:
                turns.append(TurnBase.from_neo4j_record(node))
            except ValidationError as e:
                # Skip nodes written by an older or foreign schema
                logger.warning("Skipping undecodable turn node", turn_id=node.get("id"), error=str(e))
        return turns

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def query_scope(
        self,
        guild_id: str,
        author_id: str | None = None,
        limit: int = 200,
        before: datetime | None = None,
    ) -> list[Turn]:
        """Turns in the guild (and author's conversation, if given), newest first."""
        if limit <= 0:
            return []
        try:
            turns = await self._query_scope(guild_id, author_id, limit, before)
        except (Neo4jError, DriverError) as e:
            raise self._unavailable("query_scope", e) from e
        logger.debug("Fetched turns in scope", guild_id=guild_id, author_id=author_id, count=len(turns))
        return turns

    @with_session()
    async def _statistics(self, session: AsyncSession) -> StoreStatistics:
        result = await session.run(TurnQueries.statistics())
        record = await result.single()
        if record is None:
            return StoreStatistics.empty()
        return StoreStatistics(
            total_messages=record["total_messages"],
            messages_with_vectors=record["messages_with_vectors"],
            unique_channels=record["unique_channels"],
        )

    @with_error_handling(error_level=ErrorLevel.WARNING)
    async def statistics(self) -> StoreStatistics:
        try:
            return await self._statistics()
        except (Neo4jError, DriverError) as e:
            raise self._unavailable("statistics", e) from e

    async def check_connection(self) -> bool:
        """Whether the server is reachable."""
        try:
            await self.driver.verify_connectivity()
        except (Neo4jError, DriverError, OSError) as e:
            logger.warning("Neo4j connection check failed", error=str(e))
            return False
        logger.info("Neo4j connection established")
        return True

    @with_session()
    async def _ensure_schema(self, session: AsyncSession) -> None:
        for statement in TurnQueries.schema():
            result = await session.run(statement)
            await result.consume()

    async def ensure_schema(self) -> bool:
        """Create the id constraint and scope index if missing."""
        try:
            await self._ensure_schema()
        except (Neo4jError, DriverError) as e:
            logger.warning("Neo4j schema setup failed", error=str(e))
            return False
        logger.info("Neo4j schema ready")
        return True

    async def close(self) -> None:
        await self.driver.close()
        logger.info("Neo4j driver closed")
