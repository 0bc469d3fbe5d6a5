"""Logging setup: structlog processors feeding Logfire and the console.

Logfire only exports when LOGFIRE_TOKEN (or a local credentials file) is
present; otherwise events just go to stdout.
"""

import logging
import sys

import logfire
import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder
from structlog.types import Processor
from structlog.typing import FilteringBoundLogger


def _shared_processors() -> list[Processor]:
    """Processors applied to both structlog and stdlib records."""
    return [
        # guild_id / channel_id bound per call by the context manager
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        CallsiteParameterAdder(
            parameters=[
                CallsiteParameter.MODULE,
                CallsiteParameter.FUNC_NAME,
                CallsiteParameter.LINENO,
            ]
        ),
        structlog.processors.StackInfoRenderer(),
    ]


def setup_logging(
    service_name: str = "semantic-context",
    debug: bool = False,
    json_logs: bool = False,
) -> None:
    """Configure structlog, the stdlib root logger and Logfire.

    Args:
        service_name: Service name reported to Logfire
        debug: Lower the threshold to DEBUG
        json_logs: Render JSON lines instead of the coloured console format
    """
    logfire.configure(service_name=service_name, send_to_logfire="if-token-present")
    level = logging.DEBUG if debug else logging.INFO
    renderer: Processor = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.dev.set_exc_info,
            # Must run before rendering turns the event into a string
            logfire.StructlogProcessor(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # neo4j and httpx log through the stdlib; give them the same format
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=_shared_processors())
    )
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Structured logger, conventionally ``get_logger(__name__)``."""
    return structlog.get_logger(name)
