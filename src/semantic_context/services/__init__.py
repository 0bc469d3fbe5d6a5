"""Service layer interfaces and implementations."""

from datetime import datetime
from typing import Protocol, runtime_checkable

from semantic_context.domain.models import StoreStatistics, Turn


@runtime_checkable
class EmbeddingService(Protocol):
    """Protocol for embedding services."""

    @property
    def dimensions(self) -> int:
        """Length of every vector returned by ``embed``."""
        ...

    async def embed(self, text: str, input_type: str = "document") -> list[float]:
        """Generate embedding for a single text."""
        ...

    async def probe(self) -> bool:
        """Cheap health check; never raises."""
        ...

    async def close(self) -> None: ...


@runtime_checkable
class MessageStore(Protocol):
    """Protocol for conversation turn stores."""

    async def append(self, turn: Turn) -> None:
        """Persist a new turn. Raises StoreError or DuplicateTurnError."""
        ...

    async def query_scope(
        self,
        guild_id: str,
        author_id: str | None = None,
        limit: int = 200,
        before: datetime | None = None,
    ) -> list[Turn]:
        """Turns in scope, most recent first."""
        ...

    async def statistics(self) -> StoreStatistics: ...

    async def check_connection(self) -> bool: ...

    async def ensure_schema(self) -> bool: ...

    async def close(self) -> None: ...


__all__ = ["EmbeddingService", "MessageStore"]
