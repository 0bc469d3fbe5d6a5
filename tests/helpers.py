"""Fakes and builders shared by the semantic context tests."""

import asyncio
import re
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any

from semantic_context.core.errors import EmbeddingError, EmbeddingErrorKind, StoreError
from semantic_context.domain.models import AssistantTurn, UserTurn
from semantic_context.infrastructure.repositories.in_memory import InMemoryTurnRepository

DIMENSIONS = 8
BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def hashed_vector(text: str, dimensions: int = DIMENSIONS) -> list[float]:
    """Bag-of-words vector: each token bumps one hashed slot."""
    vector = [0.0] * dimensions
    for token in re.findall(r"\w+", text.lower()):
        vector[sum(map(ord, token)) % dimensions] += 1.0
    return vector


def make_user_turn(
    turn_id: str,
    content: str,
    guild_id: str = "g1",
    channel_id: str = "c1",
    author_id: str = "u1",
    author_name: str = "alice",
    vector: list[float] | None = None,
    minutes: int = 0,
) -> UserTurn:
    return UserTurn(
        id=turn_id,
        content=content,
        author_id=author_id,
        author_name=author_name,
        channel_id=channel_id,
        guild_id=guild_id,
        vector=vector,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


def make_assistant_turn(
    turn_id: str,
    content: str,
    guild_id: str = "g1",
    channel_id: str = "c1",
    reply_to_author_id: str | None = None,
    vector: list[float] | None = None,
    minutes: int = 0,
) -> AssistantTurn:
    return AssistantTurn(
        id=turn_id,
        content=content,
        channel_id=channel_id,
        guild_id=guild_id,
        reply_to_author_id=reply_to_author_id,
        vector=vector,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


class FakeEmbeddingService:
    """Deterministic embedding service with switchable failures."""

    def __init__(self, dimensions: int = DIMENSIONS, probe_result: bool = True):
        self._dimensions = dimensions
        self.probe_result = probe_result
        self.probe_delay = 0.0
        self.embed_delay = 0.0
        self.fail = False
        self.error: Exception | None = None
        self.probe_calls = 0
        self.embed_calls: list[tuple[str, str]] = []
        self.closed = False

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(self, text: str, input_type: str = "document") -> list[float]:
        self.embed_calls.append((text, input_type))
        if self.embed_delay:
            await asyncio.sleep(self.embed_delay)
        if self.error is not None:
            raise self.error
        if self.fail:
            raise EmbeddingError("embedding backend down", kind=EmbeddingErrorKind.UNAVAILABLE)
        return hashed_vector(text, self._dimensions)

    async def probe(self) -> bool:
        self.probe_calls += 1
        if self.probe_delay:
            await asyncio.sleep(self.probe_delay)
        return self.probe_result

    async def close(self) -> None:
        self.closed = True


class FlakyTurnRepository(InMemoryTurnRepository):
    """In-memory store whose startup checks and calls can be made to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.connected = True
        self.schema_ok = True
        self.connection_error: Exception | None = None
        self.connection_delay = 0.0
        self.fail_appends = False
        self.fail_queries = False
        self.fail_statistics = False
        self.error: Exception | None = None
        self.query_delay = 0.0
        self.check_calls = 0
        self.closed = False

    async def check_connection(self) -> bool:
        self.check_calls += 1
        if self.connection_delay:
            await asyncio.sleep(self.connection_delay)
        if self.connection_error is not None:
            raise self.connection_error
        return self.connected

    async def ensure_schema(self) -> bool:
        return self.schema_ok

    async def append(self, turn: Any) -> None:
        if self.error is not None:
            raise self.error
        if self.fail_appends:
            raise StoreError("store unreachable")
        await super().append(turn)

    async def query_scope(self, guild_id: str, author_id: str | None = None, limit: int = 200, before: Any = None):
        if self.query_delay:
            await asyncio.sleep(self.query_delay)
        if self.error is not None:
            raise self.error
        if self.fail_queries:
            raise StoreError("store unreachable")
        return await super().query_scope(guild_id, author_id=author_id, limit=limit, before=before)

    async def statistics(self):
        if self.error is not None:
            raise self.error
        if self.fail_statistics:
            raise StoreError("store unreachable")
        return await super().statistics()

    async def close(self) -> None:
        self.closed = True


class FakeVoyageClient:
    """Stands in for ``voyageai.AsyncClient``."""

    def __init__(self, dimensions: int = 1024):
        self.dimensions = dimensions
        self.delay = 0.0
        self.error: Exception | None = None
        self.embeddings: list[list[float]] | None = None
        self.calls: list[dict[str, Any]] = []

    async def embed(self, texts: list[str], model: str, input_type: str | None = None) -> SimpleNamespace:
        self.calls.append({"texts": texts, "model": model, "input_type": input_type})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.embeddings is not None:
            return SimpleNamespace(embeddings=self.embeddings)
        return SimpleNamespace(embeddings=[[0.1] * self.dimensions for _ in texts])


class FakeResult:
    def __init__(self, records: list[dict[str, Any]]):
        self._records = records
        self.consumed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for record in self._records:
            yield record

    async def single(self, strict: bool = False) -> dict[str, Any] | None:
        return self._records[0] if self._records else None

    async def consume(self) -> None:
        self.consumed = True


class FakeSession:
    def __init__(self, driver: "FakeDriver"):
        self._driver = driver

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None

    async def run(self, query: str, parameters: dict[str, Any] | None = None, **kwargs: Any) -> FakeResult:
        params = {**(parameters or {}), **kwargs}
        self._driver.queries.append((query, params))
        if self._driver.error is not None:
            raise self._driver.error
        return FakeResult(self._driver.responder(query, params))


class FakeDriver:
    """Stands in for ``neo4j.AsyncDriver``; records every query."""

    def __init__(self) -> None:
        self.queries: list[tuple[str, dict[str, Any]]] = []
        self.session_kwargs: list[dict[str, Any]] = []
        self.error: Exception | None = None
        self.connectivity_error: Exception | None = None
        self.records: list[dict[str, Any]] = []
        self.closed = False

    def responder(self, query: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        return self.records

    def session(self, **kwargs: Any) -> FakeSession:
        self.session_kwargs.append(kwargs)
        return FakeSession(self)

    async def verify_connectivity(self) -> None:
        if self.connectivity_error is not None:
            raise self.connectivity_error

    async def close(self) -> None:
        self.closed = True


