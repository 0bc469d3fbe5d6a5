"""Tests for the circuit breaker."""

import pytest

from semantic_context.core.base import ErrorCode
from semantic_context.core.circuit_breaker import CircuitBreaker, CircuitState
from semantic_context.core.errors import ServiceError


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


async def failing() -> None:
    raise RuntimeError("boom")


async def succeeding() -> str:
    return "ok"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def breaker(clock: FakeClock) -> CircuitBreaker:
    return CircuitBreaker("test", failure_threshold=2, recovery_timeout=10.0, clock=clock)


class TestCircuitBreaker:
    """Tests for CircuitBreaker state transitions."""

    async def test_passes_results_through(self, breaker: CircuitBreaker) -> None:
        assert await breaker.call_async(succeeding) == "ok"
        assert breaker.state == CircuitState.CLOSED

    async def test_opens_after_threshold(self, breaker: CircuitBreaker) -> None:
        for _ in range(2):
            with pytest.raises(RuntimeError):
                await breaker.call_async(failing)

        assert breaker.state == CircuitState.OPEN
        with pytest.raises(ServiceError) as exc_info:
            await breaker.call_async(succeeding)
        assert exc_info.value.code == ErrorCode.CIRCUIT_OPEN

    async def test_success_resets_failure_count(self, breaker: CircuitBreaker) -> None:
        with pytest.raises(RuntimeError):
            await breaker.call_async(failing)
        await breaker.call_async(succeeding)

        assert breaker.failure_count == 0

    async def test_half_open_success_closes(self, breaker: CircuitBreaker, clock: FakeClock) -> None:
        for _ in range(2):
            with pytest.raises(RuntimeError):
                await breaker.call_async(failing)
        clock.now = 11.0

        assert await breaker.call_async(succeeding) == "ok"
        assert breaker.state == CircuitState.CLOSED

    async def test_half_open_failure_reopens(self, breaker: CircuitBreaker, clock: FakeClock) -> None:
        for _ in range(2):
            with pytest.raises(RuntimeError):
                await breaker.call_async(failing)
        clock.now = 11.0

        with pytest.raises(RuntimeError):
            await breaker.call_async(failing)

        assert breaker.state == CircuitState.OPEN

    async def test_unexpected_exceptions_do_not_count(self, clock: FakeClock) -> None:
        breaker = CircuitBreaker("typed", failure_threshold=1, expected_exception_types=(ValueError,), clock=clock)

        with pytest.raises(RuntimeError):
            await breaker.call_async(failing)

        assert breaker.state == CircuitState.CLOSED
        assert breaker.get_state()["failure_count"] == 0
