"""Voyage AI embedding service."""

import asyncio
import time
from typing import Any

import voyageai
from voyageai import error as voyage_error

from semantic_context.core.base import AIServiceErrorDetails, ErrorLevel
from semantic_context.core.circuit_breaker import CircuitBreaker
from semantic_context.core.config import Settings, settings
from semantic_context.core.decorators import with_error_handling
from semantic_context.core.errors import (
    EmbeddingError,
    EmbeddingErrorKind,
    InvalidInputError,
    ServiceError,
)
from semantic_context.core.logging import get_logger

logger = get_logger(__name__)

PROBE_TEXT = "semantic context embedding probe"

# Output dimensionality of the Voyage models we know about
MODEL_DIMENSIONS = {
    "voyage-01": 1024,
    "voyage-02": 1536,
    "voyage-large-2": 1536,
    "voyage-code-2": 1536,
    "voyage-3-large": 1024,
    "voyage-3": 1024,
    "voyage-3-lite": 512,
    "voyage-3.5": 1024,
    "voyage-3.5-lite": 1024,
}


class VoyageEmbeddingService:
    """Voyage AI embedding service.

    Every call is bounded by ``timeout`` and routed through a circuit breaker,
    so a hanging or failing API costs at most one timeout per recovery window.
    All failures surface as :class:`EmbeddingError`.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        dimensions: int | None = None,
        client: Any | None = None,
        config: Settings | None = None,
    ) -> None:
        """Initialize the Voyage embedding service.

        Args:
            api_key: Optional key override (defaults to settings.voyage_api_key)
            model: Optional model override (defaults to settings.voyage_model)
            timeout: Seconds allowed per embed call
            dimensions: Expected vector size; looked up from the model table when omitted
            client: Pre-built ``voyageai.AsyncClient``-compatible client
            config: Settings to read defaults from

        Raises:
            InvalidInputError: If no API key is available and no client was given
        """
        config = config or settings
        self.model = model or config.voyage_model
        self.timeout = timeout or config.embedding_timeout_seconds
        self._dimensions = dimensions or config.embedding_dimensions

        if client is None:
            key = api_key or config.voyage_api_key.get_secret_value()
            if not key:
                raise InvalidInputError(
                    message="Voyage API key not configured",
                    details={"source": "VoyageEmbeddingService", "operation": "initialization"},
                )
            # Retries would multiply the per-call timeout
            client = voyageai.AsyncClient(api_key=key, max_retries=0, timeout=self.timeout)
        self.client = client

        self._circuit_breaker: CircuitBreaker[list[list[float]]] = CircuitBreaker(
            name="voyage_api",
            failure_threshold=config.circuit_failure_threshold,
            recovery_timeout=config.circuit_recovery_timeout,
            expected_exception_types=(EmbeddingError,),
        )

    @property
    def dimensions(self) -> int:
        """Dimensionality of every vector this service returns."""
        if self._dimensions:
            return self._dimensions
        return MODEL_DIMENSIONS.get(self.model, 1024)

    def _details(self, operation: str, **extra: Any) -> AIServiceErrorDetails:
        return AIServiceErrorDetails(
            source="VoyageEmbeddingService",
            operation=operation,
            service_name="Voyage AI",
            endpoint="/embeddings",
            model_name=self.model,
            **extra,
        )

    async def _call_voyage_api(self, texts: list[str], input_type: str) -> list[list[float]]:
        """Single bounded API call; wrapped by the circuit breaker."""
        started = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self.client.embed(texts=texts, model=self.model, input_type=input_type),
                timeout=self.timeout,
            )
        except TimeoutError as e:
            raise EmbeddingError(
                message=f"Embedding request exceeded {self.timeout:.1f}s",
                kind=EmbeddingErrorKind.TIMEOUT,
                details=self._details("embed", latency_ms=(time.perf_counter() - started) * 1000),
            ) from e
        except voyage_error.VoyageError as e:
            raise self._map_error(e) from e

        embeddings = getattr(response, "embeddings", None) or []
        if len(embeddings) != len(texts):
            raise EmbeddingError(
                message="Voyage API returned incomplete embeddings",
                kind=EmbeddingErrorKind.MALFORMED_RESPONSE,
                details=self._details("embed", status_code=200),
            )

        vectors = [[float(x) for x in emb] for emb in embeddings]
        for vector in vectors:
            if len(vector) != self.dimensions:
                raise EmbeddingError(
                    message=f"Expected {self.dimensions}-dimensional embedding, got {len(vector)}",
                    kind=EmbeddingErrorKind.MALFORMED_RESPONSE,
                    details=self._details(
                        "embed",
                        expected_dimensions=self.dimensions,
                        actual_dimensions=len(vector),
                    ),
                )
        return vectors

    def _map_error(self, e: Exception) -> EmbeddingError:
        """Map client errors to our exception types."""
        if isinstance(e, voyage_error.Timeout):
            return EmbeddingError(
                message="Embeddings API request timed out",
                kind=EmbeddingErrorKind.TIMEOUT,
                details=self._details("embed", status_code=408),
            )
        if isinstance(e, voyage_error.RateLimitError):
            status = 429
        elif isinstance(e, voyage_error.AuthenticationError):
            status = 401
        else:
            status = getattr(e, "http_status", None)
        return EmbeddingError(
            message=f"Embeddings API unavailable: {e!s}",
            kind=EmbeddingErrorKind.UNAVAILABLE,
            details=self._details("embed", status_code=status),
        )

    async def _embed_many(self, texts: list[str], input_type: str) -> list[list[float]]:
        try:
            return await self._circuit_breaker.call_async(self._call_voyage_api, texts, input_type)
        except ServiceError as e:
            # Circuit open
            raise EmbeddingError(
                message=e.message,
                kind=EmbeddingErrorKind.UNAVAILABLE,
                details=self._details("embed", status_code=503),
            ) from e

    @with_error_handling(error_level=ErrorLevel.WARNING)
    async def embed(self, text: str, input_type: str = "document") -> list[float]:
        """Generate an embedding vector for ``text``.

        Args:
            text: Non-blank text to embed
            input_type: "document" for stored turns, "query" for retrieval queries

        Raises:
            InvalidInputError: If text is blank
            EmbeddingError: On timeout, API failure or malformed response
        """
        if not text or not text.strip():
            raise InvalidInputError(
                message="Cannot embed empty text",
                details={"source": "VoyageEmbeddingService", "operation": "embed"},
            )
        vectors = await self._embed_many([text], input_type)
        return vectors[0]

    async def embed_batch(self, texts: list[str], input_type: str = "document") -> list[list[float]]:
        """Embed several non-blank texts in one request."""
        if not texts:
            return []
        if any(not t.strip() for t in texts):
            raise InvalidInputError(
                message="Batch contains empty texts",
                details={"source": "VoyageEmbeddingService", "operation": "embed_batch"},
            )
        return await self._embed_many(texts, input_type)

    async def probe(self) -> bool:
        """Cheap health check: one embed of a fixed string. Never raises."""
        try:
            await self.embed(PROBE_TEXT)
        except (EmbeddingError, InvalidInputError) as e:
            logger.warning("Embedding probe failed", model=self.model, error=str(e))
            return False
        logger.info("Embedding probe succeeded", model=self.model, dimensions=self.dimensions)
        return True

    def get_state(self) -> dict[str, Any]:
        return {"model": self.model, "dimensions": self.dimensions, "circuit": self._circuit_breaker.get_state()}

    async def close(self) -> None:
        """Nothing to release; the voyage client holds no persistent connection."""
