"""
Centralized logging configuration for the speedrun core.

This module provides standardized logging configuration using structlog
for all components. Lifecycle transitions, saves and personal best changes
are logged as structured events so a host can keep an audit trail.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging_from_config(config: dict[str, Any]) -> None:
    """
    Configure logging from the ``logging`` section of merged settings.

    Args:
        config: Output of ConfigLoader.merge_config()
    """
    params = config.get("logging", {})
    configure_logging(
        level=params.get("level", "INFO"),
        format_json=params.get("format_json", False)
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_state_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for attempt lifecycle transitions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structlog logger bound to the run manager subsystem
    """
    return get_logger(name).bind(
        subsystem="run_manager",
        audit_trail=True
    )


def get_store_logger(name: str) -> FilteringBoundLogger:
    """Get a logger bound to the persistence subsystem."""
    return get_logger(name).bind(subsystem="persistence")


def log_mode_transition(
    logger: FilteringBoundLogger,
    from_mode: str,
    to_mode: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log an attempt mode transition with standardized format.

    Args:
        logger: Structlog logger instance
        from_mode: Mode before the operation
        to_mode: Mode after the operation
        trigger: Operation that caused the transition (start, split, ...)
        context: Additional context data
    """
    bound_logger = logger.bind(
        from_mode=from_mode,
        to_mode=to_mode,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Mode transition")
