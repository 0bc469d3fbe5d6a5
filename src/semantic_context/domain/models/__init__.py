"""Domain models for the semantic context manager."""

from .retrieval import (
    UNSCORED,
    AvailabilityState,
    RetrievalResult,
    ScoredTurn,
    StoreOutcome,
    StoreStatistics,
)
from .turn import (
    AssistantTurn,
    Turn,
    TurnRole,
    UserTurn,
    assistant_turn_id,
    matches_author,
)

__all__ = [
    "UNSCORED",
    "AssistantTurn",
    # Retrieval
    "AvailabilityState",
    "RetrievalResult",
    "ScoredTurn",
    "StoreOutcome",
    "StoreStatistics",
    # Turns
    "Turn",
    "TurnRole",
    "UserTurn",
    "assistant_turn_id",
    "matches_author",
]
