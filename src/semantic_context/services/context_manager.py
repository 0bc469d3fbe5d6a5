"""Semantic context manager.

Stores conversation turns and, for each new utterance, picks the most
relevant prior turns to hand to the language model. Infrastructure failures
never reach the caller: retrieval degrades to an empty result and writes
report a :class:`StoreOutcome` instead of raising.
"""

import asyncio
from collections.abc import Awaitable
from typing import Any

from pydantic import ValidationError
from structlog.contextvars import bound_contextvars

from semantic_context.core.base import ValidationErrorDetails
from semantic_context.core.config import Settings, settings
from semantic_context.core.errors import (
    DuplicateTurnError,
    EmbeddingError,
    InitError,
    InitErrorKind,
    InvalidInputError,
    InvalidScopeError,
    StoreError,
)
from semantic_context.core.logging import get_logger
from semantic_context.domain.models import (
    AssistantTurn,
    AvailabilityState,
    RetrievalResult,
    ScoredTurn,
    StoreOutcome,
    StoreStatistics,
    Turn,
    UserTurn,
    assistant_turn_id,
)
from semantic_context.services import EmbeddingService, MessageStore
from semantic_context.services.ranking import SimilarityRanker

logger = get_logger(__name__)


class SemanticContextManager:
    """Turn storage and relevance-ranked context retrieval.

    Construct once at startup, call :meth:`initialize`, then share the
    instance. Until initialization succeeds every call is a harmless no-op.
    """

    def __init__(
        self,
        store: MessageStore,
        embeddings: EmbeddingService | None = None,
        ranker: SimilarityRanker | None = None,
        config: Settings | None = None,
    ):
        self.store = store
        self.embeddings = embeddings
        self.ranker = ranker or SimilarityRanker()
        self.config = config or settings

        self._state = AvailabilityState.UNINITIALIZED
        self._vectors_enabled = False
        self._last_init_error: InitError | None = None
        self._init_lock = asyncio.Lock()

    @property
    def state(self) -> AvailabilityState:
        return self._state

    @property
    def mode(self) -> str:
        return "semantic" if self.is_ready() else "simple"

    @property
    def vectors_enabled(self) -> bool:
        """Whether new turns and queries get embedded."""
        return self._vectors_enabled

    @property
    def last_init_error(self) -> InitError | None:
        """Why the last initialization degraded or disabled vectors, if it did."""
        return self._last_init_error

    def is_ready(self) -> bool:
        return self._state == AvailabilityState.SEMANTIC_READY

    async def _check(self, name: str, call: Awaitable[bool], timeout: float) -> bool:
        """Run one startup check; any failure counts as False."""
        try:
            return bool(await asyncio.wait_for(call, timeout=timeout))
        except TimeoutError:
            logger.warning(f"{name} timed out", timeout=timeout)
        except Exception as e:
            logger.warning(f"{name} raised", error=str(e), error_type=type(e).__name__, exc_info=True)
        return False

    async def _probe(self) -> tuple[AvailabilityState, InitError | None]:
        if not (self.config.enable_database and self.config.enable_semantic_search):
            return AvailabilityState.DEGRADED, InitError(
                "Semantic context disabled by configuration",
                kind=InitErrorKind.DISABLED,
                details={"source": "SemanticContextManager", "operation": "initialize"},
            )

        store_timeout = self.config.store_timeout_seconds
        if not await self._check("Store connection check", self.store.check_connection(), store_timeout):
            return AvailabilityState.DEGRADED, InitError(
                "Message store unreachable",
                kind=InitErrorKind.STORE_UNREACHABLE,
                details={"source": "SemanticContextManager", "operation": "check_connection"},
            )
        if not await self._check("Store schema setup", self.store.ensure_schema(), store_timeout):
            return AvailabilityState.DEGRADED, InitError(
                "Message store schema setup failed",
                kind=InitErrorKind.SCHEMA_FAILED,
                details={"source": "SemanticContextManager", "operation": "ensure_schema"},
            )

        if self.embeddings is None:
            probe_ok = False
            logger.info("No embedding service configured")
        else:
            probe_ok = await self._check(
                "Embedding probe",
                self.embeddings.probe(),
                self.config.embedding_timeout_seconds,
            )

        self._vectors_enabled = probe_ok
        if probe_ok:
            return AvailabilityState.SEMANTIC_READY, None

        error = InitError(
            "Embedding service unavailable",
            kind=InitErrorKind.EMBEDDING_PROBE_FAILED,
            details={"source": "SemanticContextManager", "operation": "probe"},
        )
        if self.config.require_embeddings:
            return AvailabilityState.DEGRADED, error
        return AvailabilityState.SEMANTIC_READY, error

    async def initialize(self) -> bool:
        """Run the startup checks and settle the availability state.

        Safe to call concurrently: callers arriving while a sequence runs
        share its outcome. Once ready, further calls return True straight
        away. From DEGRADED a fresh call retries the checks.

        Returns:
            True when semantic mode is available
        """
        joined = self._init_lock.locked()
        async with self._init_lock:
            if self.is_ready():
                return True
            if joined and self._state == AvailabilityState.DEGRADED:
                return False

            self._state = AvailabilityState.PROBING
            self._vectors_enabled = False
            state, error = AvailabilityState.DEGRADED, None
            try:
                state, error = await self._probe()
            finally:
                self._state = state
                self._last_init_error = error

        if state == AvailabilityState.SEMANTIC_READY:
            logger.info(
                "Semantic context ready",
                vectors_enabled=self._vectors_enabled,
                reason=error.message if error else None,
            )
            return True

        logger.warning(
            "Semantic context degraded to simple mode",
            reason=error.message if error else None,
            error_kind=error.kind.value if error else None,
        )
        return False

    async def _embed(self, text: str, input_type: str) -> list[float] | None:
        """Embedding of ``text``, or None if vectors are off or the call fails."""
        if not self._vectors_enabled or self.embeddings is None or not text.strip():
            return None
        timeout = self.config.embedding_timeout_seconds
        try:
            return await asyncio.wait_for(self.embeddings.embed(text, input_type=input_type), timeout=timeout)
        except TimeoutError:
            logger.warning("Embedding timed out", timeout=timeout, input_type=input_type)
        except (EmbeddingError, InvalidInputError) as e:
            logger.warning("Embedding failed", error=str(e), input_type=input_type)
        except Exception as e:
            logger.warning(
                "Embedding raised unexpectedly",
                error=str(e),
                error_type=type(e).__name__,
                input_type=input_type,
                exc_info=True,
            )
        return None

    def _validate_scope(self, guild_id: str, author_id: str | None, top_k: int) -> None:
        if not guild_id or not guild_id.strip():
            raise InvalidScopeError("guild_id must be a non-empty string", field="guild_id", value=guild_id)
        if author_id is not None and not author_id.strip():
            raise InvalidScopeError("author_id must be None or a non-empty string", field="author_id", value=author_id)
        if top_k < 1:
            raise InvalidScopeError("top_k must be at least 1", field="top_k", value=top_k)

    async def _retrieve(self, query: str, guild_id: str, author_id: str | None, top_k: int) -> RetrievalResult:
        pool_size = max(self.config.candidate_pool_size, top_k)
        candidates = await asyncio.wait_for(
            self.store.query_scope(guild_id, author_id=author_id, limit=pool_size),
            timeout=self.config.store_timeout_seconds,
        )
        if not candidates:
            return []

        query_vector = None
        if any(turn.has_vector for turn in candidates):
            query_vector = await self._embed(query, input_type="query")

        return self.ranker.rank(query, candidates, top_k, query_vector=query_vector)

    async def get_relevant_context(
        self,
        query: str,
        guild_id: str,
        author_id: str | None = None,
        top_k: int | None = None,
    ) -> RetrievalResult:
        """Prior turns most relevant to ``query`` within the guild/author scope.

        Args:
            query: The new user utterance
            guild_id: Guild to search; turns from other guilds are never returned
            author_id: Optional narrowing to one author's conversation
            top_k: Maximum number of results (defaults to settings.default_top_k)

        Returns:
            At most ``top_k`` scored turns, best first. Empty when not ready or
            when the store fails or the call times out.

        Raises:
            InvalidScopeError: If guild_id/author_id is blank or top_k < 1
        """
        top_k = self.config.default_top_k if top_k is None else top_k
        self._validate_scope(guild_id, author_id, top_k)

        if not self.is_ready():
            return []

        with bound_contextvars(guild_id=guild_id, author_id=author_id):
            timeout = self.config.retrieval_timeout_seconds
            try:
                results = await asyncio.wait_for(
                    self._retrieve(query, guild_id, author_id, top_k),
                    timeout=timeout,
                )
            except TimeoutError:
                logger.warning("Context retrieval timed out", timeout=timeout)
                return []
            except StoreError as e:
                logger.warning("Context retrieval failed", error=str(e), error_kind=e.kind.value)
                return []
            except Exception as e:
                logger.warning(
                    "Context retrieval raised unexpectedly",
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
                return []

            logger.debug("Retrieved context", results=len(results), top_k=top_k)
            return results

    def _build_turn(self, turn_fields: dict[str, Any], turn_type: type[UserTurn] | type[AssistantTurn]) -> Turn:
        try:
            return turn_type(**turn_fields)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"])
            raise InvalidInputError(
                f"Invalid {turn_type.__name__}: {field}: {first['msg']}",
                details=ValidationErrorDetails(
                    source="context_manager",
                    operation="store",
                    field=field,
                    actual_value=turn_fields.get(field),
                    constraint=first["type"],
                ),
            ) from e

    async def _store(self, turn_fields: dict[str, Any], turn_type: type[UserTurn] | type[AssistantTurn]) -> StoreOutcome:
        turn = self._build_turn(turn_fields, turn_type)
        if not self.is_ready():
            return StoreOutcome.SKIPPED

        with bound_contextvars(guild_id=turn.guild_id, channel_id=turn.channel_id):
            vector = await self._embed(turn.content, input_type="document")
            if vector is not None:
                turn = turn.model_copy(update={"vector": vector})

            try:
                await asyncio.wait_for(self.store.append(turn), timeout=self.config.store_timeout_seconds)
            except DuplicateTurnError:
                logger.info("Turn already stored", turn_id=turn.id)
                return StoreOutcome.DUPLICATE
            except TimeoutError:
                logger.warning("Storing turn timed out", turn_id=turn.id)
                return StoreOutcome.FAILED
            except StoreError as e:
                logger.warning("Storing turn failed", turn_id=turn.id, error=str(e))
                return StoreOutcome.FAILED
            except Exception as e:
                logger.warning(
                    "Storing turn raised unexpectedly",
                    turn_id=turn.id,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
                return StoreOutcome.FAILED

            logger.debug("Stored turn", turn_id=turn.id, role=turn.role, has_vector=turn.has_vector)
            return StoreOutcome.STORED

    async def store_user_message(
        self,
        message_id: str,
        content: str,
        author_id: str,
        author_name: str,
        channel_id: str,
        guild_id: str,
    ) -> StoreOutcome:
        """Record a user's message. Best effort; never raises for store or embedding failures.

        Raises:
            InvalidInputError: If an id, author or scope field is blank
        """
        return await self._store(
            {
                "id": message_id,
                "content": content,
                "author_id": author_id,
                "author_name": author_name,
                "channel_id": channel_id,
                "guild_id": guild_id,
            },
            UserTurn,
        )

    async def store_assistant_message(
        self,
        message_id: str,
        content: str,
        channel_id: str,
        guild_id: str,
        reply_to_author_id: str | None = None,
    ) -> StoreOutcome:
        """Record a generated reply under ``message_id``.

        Use :func:`assistant_turn_id` on the provoking user message's id to
        get the conventional id.
        """
        return await self._store(
            {
                "id": message_id,
                "content": content,
                "channel_id": channel_id,
                "guild_id": guild_id,
                "reply_to_author_id": reply_to_author_id,
            },
            AssistantTurn,
        )

    async def store_exchange(
        self,
        message_id: str,
        user_content: str,
        reply: str,
        author_id: str,
        author_name: str,
        channel_id: str,
        guild_id: str,
    ) -> tuple[StoreOutcome, StoreOutcome]:
        """Store a user message and the reply it received, in that order."""
        user_outcome = await self.store_user_message(
            message_id, user_content, author_id, author_name, channel_id, guild_id
        )
        assistant_outcome = await self.store_assistant_message(
            assistant_turn_id(message_id),
            reply,
            channel_id,
            guild_id,
            reply_to_author_id=author_id,
        )
        return user_outcome, assistant_outcome

    async def get_statistics(self) -> StoreStatistics:
        """Store counters; all zero when not ready or the store fails."""
        if not self.is_ready():
            return StoreStatistics.empty()
        try:
            return await asyncio.wait_for(self.store.statistics(), timeout=self.config.store_timeout_seconds)
        except TimeoutError:
            logger.warning("Statistics query timed out")
        except StoreError as e:
            logger.warning("Statistics query failed", error=str(e))
        except Exception as e:
            logger.warning(
                "Statistics query raised unexpectedly",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
        return StoreStatistics.empty()

    @staticmethod
    def render_context(results: RetrievalResult, assistant_name: str = "Assistant") -> str:
        """Format retrieved turns as prompt lines.

        Each line reads ``"<speaker>: <content> (relevance: NN.N%)"``; the
        relevance suffix is left off for unscored or zero-score turns.
        """
        return "".join(_render_line(item, assistant_name) for item in results)

    async def close(self) -> None:
        """Release the store and embedding client."""
        if self.embeddings is not None:
            await self.embeddings.close()
        await self.store.close()


def _render_line(item: ScoredTurn, assistant_name: str) -> str:
    suffix = f" (relevance: {item.score * 100:.1f}%)" if item.is_scored and item.score > 0 else ""
    return f"{item.turn.speaker(assistant_name)}: {item.turn.content}{suffix}\n"
