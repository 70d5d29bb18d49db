"""Logging configuration for localssd-e2e.

Configures structlog with human-readable output for interactive runs and
JSON output for CI logs. Every event logged while a scenario runs carries
the cluster, node pool and namespace it runs against, and the workload once
it is known, so lines from several runs in one CI log can be told apart.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog


def configure_logging(
    level: str = "info",
    log_file: str | Path | None = None,
    json_output: bool = False,
) -> None:
    """Configure logging for the scenario run.

    Called once on startup. Configures both standard logging and structlog.

    Args:
        level: Log level (debug, info, warning, error, critical)
        log_file: Optional path to log file
        json_output: If True, output JSON format (for CI)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = []

    if log_file:
        file_handler = logging.FileHandler(str(log_file))
        file_handler.setLevel(log_level)
        handlers.append(file_handler)
    else:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setLevel(log_level)
        handlers.append(stream_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        format="%(message)s",
        force=True,
    )

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


@contextmanager
def scenario_context(
    cluster: str,
    pool: str,
    namespace: str,
) -> Iterator[None]:
    """Bind scenario identity to every event logged inside the block.

    Args:
        cluster: Cluster the node pool is created in
        pool: Node pool name
        namespace: Namespace the workload runs in
    """
    with structlog.contextvars.bound_contextvars(
        cluster=cluster,
        pool=pool,
        namespace=namespace,
    ):
        try:
            yield
        finally:
            structlog.contextvars.unbind_contextvars("workload")


def bind_workload(name: str) -> None:
    """Add the workload name to the current scenario context.

    Dropped again when the enclosing scenario_context exits.
    """
    structlog.contextvars.bind_contextvars(workload=name)
