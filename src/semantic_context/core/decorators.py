"""Error handling decorators"""

import inspect
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar, cast

from .base import ApplicationError, ErrorLevel
from .error_context import ErrorContext
from .logging import get_logger

logger = get_logger(__name__)
P = ParamSpec("P")
T = TypeVar("T")


def _log_failure(func: Callable[..., Any], error: Exception, fallback_level: ErrorLevel) -> None:
    level = error.level if isinstance(error, ApplicationError) else fallback_level
    ctx = ErrorContext(error, function=func.__qualname__)
    logger.log(
        level.to_logging_level(),
        f"Error in {func.__name__}: {error!s}",
        error_context=ctx.to_dict(),
        exc_info=level in (ErrorLevel.ERROR, ErrorLevel.CRITICAL),
    )


def with_error_handling(
    error_level: ErrorLevel = ErrorLevel.ERROR,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorator for logging errors raised by a coroutine function, then re-raising them.

    ApplicationErrors are logged at their own level; anything else at ``error_level``.

    Args:
        error_level: Severity level for unexpected errors

    Returns:
        Decorated function with error handling
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        original_signature = inspect.signature(func)

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                _log_failure(func, e, error_level)
                raise

        wrapper.__signature__ = original_signature  # type: ignore[attr-defined]
        return wrapper

    return decorator


def with_session(driver_attr: str = "driver") -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator to automatically manage Neo4j session lifecycle.

    The wrapped method receives an open ``AsyncSession`` as its first
    argument after ``self``.

    Args:
        driver_attr: Name of the attribute containing the AsyncDriver (default: "driver")

    Usage:
        @with_session()
        async def my_method(self, session, other_args):
            result = await session.run(query)
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            if not args:
                raise ValueError(f"{func.__name__} requires at least 'self' argument")

            self_obj = args[0]
            driver = getattr(self_obj, driver_attr, None)

            if driver is None:
                raise AttributeError(
                    f"Object {self_obj.__class__.__name__} has no attribute '{driver_attr}'. "
                    f"Either provide the correct driver_attr or ensure the object has a driver."
                )

            session_kwargs = getattr(self_obj, "session_kwargs", None) or {}
            async with driver.session(**session_kwargs) as session:
                new_args = (args[0], session) + args[1:]
                return await func(*new_args, **kwargs)  # type: ignore[arg-type]

        return cast(Callable[P, T], wrapper)

    return decorator
