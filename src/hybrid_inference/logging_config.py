"""Structured logging configuration using structlog.

Every log line carries the service name and version plus whatever the
request middleware bound (request_id, method, path). The orchestrator and
tiers add entity_id, user_id, tier and category as keyword fields, so one
resolve can be followed across retries and fallbacks.

Production renders JSON; anything else renders a colored console.
"""

import logging
import sys
from enum import Enum

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

SERVICE_NAME = "hybrid-inference"

# Third-party loggers that log every request/connection at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "uvicorn.access")


def _service_context(version: str) -> Processor:
    def add_service_context(
        logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("version", version)
        return event_dict

    return add_service_context


def enum_values(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Render TierName/ErrorCategory/BreakerState fields as their plain values."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    environment: str = "development",
    version: str = "0.1.0",
) -> None:
    """Configure structlog on top of the stdlib root logger.

    Args:
        log_level: Logging level name (unknown names fall back to INFO)
        environment: "production" selects the JSON renderer
        version: Service version stamped on every event
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    json_output = environment.lower() == "production"

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_context(version),
        enum_values,
    ]
    if json_output:
        pre_chain.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=logging.getLevelName(level),
        renderer="json" if json_output else "console",
    )
