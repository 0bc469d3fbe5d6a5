"""Retrieval results, store counters and availability state."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .turn import AssistantTurn, UserTurn

# Score for turns handed back without ranking
UNSCORED = -1.0


class AvailabilityState(str, Enum):
    """Lifecycle of a context manager instance.

    UNINITIALIZED -> PROBING -> SEMANTIC_READY | DEGRADED. SEMANTIC_READY is
    terminal; DEGRADED may go back to PROBING on a manual re-initialization.
    """

    UNINITIALIZED = "uninitialized"
    PROBING = "probing"
    SEMANTIC_READY = "semantic_ready"
    DEGRADED = "degraded"


class StoreOutcome(str, Enum):
    """What happened to a best-effort write."""

    STORED = "stored"
    DUPLICATE = "duplicate"
    FAILED = "failed"
    SKIPPED = "skipped"


class ScoredTurn(BaseModel):
    """A turn paired with its relevance to the query."""

    model_config = ConfigDict(frozen=True)

    turn: UserTurn | AssistantTurn = Field(discriminator="role")
    score: float = Field(description="Relevance in [0, 1], or UNSCORED")

    @property
    def is_scored(self) -> bool:
        return self.score != UNSCORED


RetrievalResult = list[ScoredTurn]


class StoreStatistics(BaseModel):
    """Aggregate counters over the message store."""

    total_messages: int = 0
    messages_with_vectors: int = 0
    unique_channels: int = 0

    @classmethod
    def empty(cls) -> "StoreStatistics":
        return cls()
