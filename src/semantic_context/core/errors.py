"""Specific error types for the semantic context manager."""

from enum import Enum

from .base import (
    AIServiceErrorDetails,
    ApplicationError,
    DatabaseErrorDetails,
    ErrorCode,
    ErrorDetails,
    ErrorLevel,
    ServiceErrorDetails,
    ValidationErrorDetails,
)


class StoreErrorKind(str, Enum):
    UNAVAILABLE = "unavailable"
    DUPLICATE_ID = "duplicate_id"


class EmbeddingErrorKind(str, Enum):
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed_response"


class InitErrorKind(str, Enum):
    DISABLED = "disabled"
    STORE_UNREACHABLE = "store_unreachable"
    SCHEMA_FAILED = "schema_failed"
    EMBEDDING_PROBE_FAILED = "embedding_probe_failed"


class ServiceError(ApplicationError):
    """Error from external service calls."""

    def __init__(
        self,
        message: str,
        details: ServiceErrorDetails | None = None,
        code: ErrorCode = ErrorCode.SERVICE_UNAVAILABLE,
    ):
        super().__init__(
            message=message,
            code=code,
            level=ErrorLevel.ERROR,
            details=details or ServiceErrorDetails(
                source="service",
                operation="external_call",
                service_name="unknown",
            ),
        )


class StoreError(ApplicationError):
    """Message store failure."""

    _codes = {
        StoreErrorKind.UNAVAILABLE: ErrorCode.DB_CONNECTION,
        StoreErrorKind.DUPLICATE_ID: ErrorCode.DB_DUPLICATE_KEY,
    }

    def __init__(
        self,
        message: str,
        kind: StoreErrorKind = StoreErrorKind.UNAVAILABLE,
        details: DatabaseErrorDetails | dict | None = None,
    ):
        self.kind = kind
        super().__init__(
            message=message,
            code=self._codes[kind],
            level=ErrorLevel.WARNING if kind == StoreErrorKind.DUPLICATE_ID else ErrorLevel.ERROR,
            details=details,
        )


class DuplicateTurnError(StoreError):
    """A turn with the same id is already stored."""

    def __init__(self, turn_id: str, source: str = "message_store"):
        self.turn_id = turn_id
        super().__init__(
            message=f"Turn {turn_id} already exists",
            kind=StoreErrorKind.DUPLICATE_ID,
            details=DatabaseErrorDetails(
                source=source,
                operation="append",
                service_name="message_store",
                query_type="create",
                record_id=turn_id,
            ),
        )


class EmbeddingError(ApplicationError):
    """Embedding generation failure."""

    _codes = {
        EmbeddingErrorKind.UNAVAILABLE: ErrorCode.EMBEDDING_FAILED,
        EmbeddingErrorKind.TIMEOUT: ErrorCode.EMBEDDING_TIMEOUT,
        EmbeddingErrorKind.MALFORMED_RESPONSE: ErrorCode.EMBEDDING_MALFORMED,
    }

    def __init__(
        self,
        message: str,
        kind: EmbeddingErrorKind = EmbeddingErrorKind.UNAVAILABLE,
        details: AIServiceErrorDetails | dict | None = None,
    ):
        self.kind = kind
        super().__init__(
            message=message,
            code=self._codes[kind],
            level=ErrorLevel.WARNING,
            details=details,
        )


class InitError(ApplicationError):
    """Reason the context manager fell back to simple mode."""

    def __init__(self, message: str, kind: InitErrorKind, details: ErrorDetails | dict | None = None):
        self.kind = kind
        super().__init__(
            message=message,
            code=ErrorCode.INITIALIZATION_FAILED,
            level=ErrorLevel.WARNING,
            details=details,
        )


class InvalidInputError(ApplicationError):
    """Caller passed something unusable."""

    def __init__(self, message: str, details: ValidationErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_INPUT,
            level=ErrorLevel.ERROR,
            details=details,
        )


class InvalidScopeError(InvalidInputError):
    """Malformed guild/author scope or result bound."""

    def __init__(self, message: str, field: str, value: object = None):
        super().__init__(
            message=message,
            details=ValidationErrorDetails(
                source="context_manager",
                operation="get_relevant_context",
                field=field,
                actual_value=value,
            ),
        )
