"""Circuit breaker for calls to flaky remote services.

After ``failure_threshold`` consecutive failures the breaker opens and
rejects calls outright. Once ``recovery_timeout`` has passed it lets a trial
call through (half-open); a success closes it again, a failure reopens it.
"""

import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from semantic_context.core.base import ErrorCode, ServiceErrorDetails
from semantic_context.core.errors import ServiceError
from semantic_context.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker(Generic[T]):
    """Counts consecutive failures of one remote dependency."""

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        expected_exception_types: tuple[type[BaseException], ...] = (Exception,),
        success_threshold: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            name: Dependency name used in logs and errors
            failure_threshold: Consecutive failures that open the circuit
            recovery_timeout: Seconds the circuit stays open before a trial call
            expected_exception_types: Exceptions that count as failures; others pass through uncounted
            success_threshold: Trial successes needed to close again
            clock: Monotonic time source
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception_types = expected_exception_types
        self.success_threshold = success_threshold
        self._clock = clock

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.opened_at: float | None = None
        self.last_exception: BaseException | None = None

    def _open(self) -> None:
        self.state = CircuitState.OPEN
        self.opened_at = self._clock()
        self.success_count = 0

    def _allow_request(self) -> bool:
        if self.state != CircuitState.OPEN:
            return True
        if self.opened_at is not None and self._clock() - self.opened_at >= self.recovery_timeout:
            logger.info("Circuit half-open, allowing trial call", circuit=self.name)
            self.state = CircuitState.HALF_OPEN
            return True
        return False

    def record_success(self) -> None:
        if self.state == CircuitState.HALF_OPEN:
            self.success_count += 1
            if self.success_count < self.success_threshold:
                return
            logger.info("Circuit closed after recovery", circuit=self.name)
            self.state = CircuitState.CLOSED
            self.last_exception = None
        self.failure_count = 0
        self.success_count = 0

    def record_failure(self, exception: BaseException) -> None:
        self.last_exception = exception
        if self.state == CircuitState.HALF_OPEN:
            logger.warning("Trial call failed, circuit reopened", circuit=self.name, error=str(exception))
            self.failure_count = 1
            self._open()
            return

        self.failure_count += 1
        if self.failure_count >= self.failure_threshold:
            logger.error(
                "Circuit opened",
                circuit=self.name,
                failures=self.failure_count,
                last_exception=str(exception),
            )
            self._open()

    async def call_async(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Await ``func`` unless the circuit is open.

        Raises:
            ServiceError: With code CIRCUIT_OPEN while the circuit rejects calls
        """
        if not self._allow_request():
            reason = f" (last error: {self.last_exception})" if self.last_exception else ""
            raise ServiceError(
                message=f"Circuit breaker '{self.name}' is open{reason}",
                code=ErrorCode.CIRCUIT_OPEN,
                details=ServiceErrorDetails(
                    source="circuit_breaker",
                    operation="call_async",
                    service_name=self.name,
                    status_code=503,
                ),
            )

        try:
            result = await func(*args, **kwargs)
        except self.expected_exception_types as e:
            self.record_failure(e)
            raise
        self.record_success()
        return result

    def get_state(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "opened_at": self.opened_at,
            "last_exception": str(self.last_exception) if self.last_exception else None,
        }
