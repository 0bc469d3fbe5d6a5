"""Semantic context manager: conversation turn storage and relevance-ranked retrieval."""

from semantic_context.core.config import Settings
from semantic_context.core.errors import (
    DuplicateTurnError,
    EmbeddingError,
    InitError,
    InvalidInputError,
    InvalidScopeError,
    StoreError,
)
from semantic_context.domain.models import (
    UNSCORED,
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
from semantic_context.factory import create_context_manager, create_embedding_service, create_turn_store
from semantic_context.services.context_manager import SemanticContextManager
from semantic_context.services.ranking import SimilarityRanker

__all__ = [
    "UNSCORED",
    "AssistantTurn",
    "AvailabilityState",
    "DuplicateTurnError",
    "EmbeddingError",
    "InitError",
    "InvalidInputError",
    "InvalidScopeError",
    "RetrievalResult",
    "ScoredTurn",
    "SemanticContextManager",
    "Settings",
    "SimilarityRanker",
    "StoreError",
    "StoreOutcome",
    "StoreStatistics",
    "Turn",
    "UserTurn",
    "assistant_turn_id",
    "create_context_manager",
    "create_embedding_service",
    "create_turn_store",
]
