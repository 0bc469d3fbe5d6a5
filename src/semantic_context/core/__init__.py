from .base import ErrorCode, ErrorLevel, ServiceErrorDetails
from .circuit_breaker import CircuitBreaker, CircuitState
from .errors import (
    DuplicateTurnError,
    EmbeddingError,
    EmbeddingErrorKind,
    InitError,
    InitErrorKind,
    InvalidInputError,
    InvalidScopeError,
    StoreError,
    StoreErrorKind,
)
