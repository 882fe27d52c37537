"""structlog setup shared by the server and the content watcher."""

import logging
import sys

import structlog

# Standard library loggers folded into the root handler, with a floor level
# for the noisy ones.
STDLIB_LOGGERS: dict[str, int | None] = {
    "uvicorn": None,
    "uvicorn.error": None,
    "uvicorn.access": logging.WARNING,
    "watchdog": logging.INFO,
}


def configure_logging(debug: bool = False, json: bool = True) -> None:
    """Configure structlog and route stdlib logging to stdout.

    Every line carries the level, an ISO UTC timestamp and any context
    bound with ``structlog.contextvars`` (the request id, for instance).

    Args:
        debug: Log at DEBUG instead of INFO.
        json: Render one JSON object per line; False gives console output
            for local development.
    """
    level = logging.DEBUG if debug else logging.INFO
    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]
    if json:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        # Renders tracebacks itself
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers = [logging.StreamHandler(sys.stdout)]
    root.setLevel(level)

    for name, floor in STDLIB_LOGGERS.items():
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers.clear()
        stdlib_logger.propagate = True
        if floor is not None:
            stdlib_logger.setLevel(max(floor, level))
