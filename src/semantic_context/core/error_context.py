"""Flattened error context for structured log events."""

from typing import Any
from uuid import uuid4

from .base import ApplicationError


class ErrorContext:
    """One failure plus the call-site context it happened in."""

    def __init__(self, error: BaseException, trace_id: str | None = None, **context: Any):
        self.error = error
        self.trace_id = trace_id or uuid4().hex
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Flat mapping; ApplicationError details land under ``details.*``."""
        event: dict[str, Any] = {
            "trace_id": self.trace_id,
            "error_type": type(self.error).__name__,
            "error_message": str(self.error),
        }

        if isinstance(self.error, ApplicationError):
            event["error_code"] = self.error.code.value
            event["error_level"] = self.error.level.value
            kind = getattr(self.error, "kind", None)
            if kind is not None:
                event["error_kind"] = kind.value
            event.update({f"details.{k}": v for k, v in self.error.details.model_dump(exclude_none=True).items()})

        event.update({f"context.{k}": v for k, v in self.context.items()})
        return event
