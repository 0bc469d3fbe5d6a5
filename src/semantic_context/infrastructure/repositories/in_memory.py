"""Process-local turn store for development and tests."""

import asyncio
from datetime import datetime

from semantic_context.core.errors import DuplicateTurnError
from semantic_context.core.logging import get_logger
from semantic_context.domain.models import StoreStatistics, Turn, matches_author

logger = get_logger(__name__)


class InMemoryTurnRepository:
    """In-memory turn store.

    Turns with equal timestamps keep their insertion order through a
    per-store sequence number.
    """

    def __init__(self) -> None:
        self._turns: dict[str, tuple[int, Turn]] = {}
        self._sequence = 0
        self._lock = asyncio.Lock()

    async def append(self, turn: Turn) -> None:
        async with self._lock:
            if turn.id in self._turns:
                raise DuplicateTurnError(turn.id, source="InMemoryTurnRepository")
            self._sequence += 1
            self._turns[turn.id] = (self._sequence, turn)
            logger.debug("Turn stored", turn_id=turn.id, role=turn.role)

    async def get(self, turn_id: str) -> Turn | None:
        async with self._lock:
            entry = self._turns.get(turn_id)
            return entry[1] if entry else None

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
        async with self._lock:
            entries = [
                (seq, turn)
                for seq, turn in self._turns.values()
                if turn.guild_id == guild_id
                and (author_id is None or matches_author(turn, author_id))
                and (before is None or turn.created_at < before)
            ]
        entries.sort(key=lambda entry: (entry[1].created_at, entry[0]), reverse=True)
        return [turn for _, turn in entries[:limit]]

    async def statistics(self) -> StoreStatistics:
        async with self._lock:
            turns = [turn for _, turn in self._turns.values()]
        return StoreStatistics(
            total_messages=len(turns),
            messages_with_vectors=sum(1 for turn in turns if turn.has_vector),
            unique_channels=len({turn.channel_id for turn in turns}),
        )

    async def check_connection(self) -> bool:
        return True

    async def ensure_schema(self) -> bool:
        return True

    async def close(self) -> None:
        """Nothing to release."""
