"""Structured logging for bandit search runs.

This module configures structlog for JSON or console output, adds an ISO
timestamp, and injects the experiment and selector context into every event
emitted while a search is running.
"""

import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

import structlog

experiment_id_var: ContextVar[str | None] = ContextVar("experiment_id", default=None)
selector_var: ContextVar[str | None] = ContextVar("selector", default=None)


def add_experiment_context(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add experiment ID and selector name to log entries.

    Args:
        logger: Logger instance
        method_name: Log method name
        event_dict: Event dictionary

    Returns:
        Updated event dict
    """
    experiment_id = experiment_id_var.get()
    if experiment_id:
        event_dict.setdefault("experiment_id", experiment_id)
    selector = selector_var.get()
    if selector:
        event_dict.setdefault("selector", selector)
    return event_dict


def add_timestamp(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    include_traceback: bool = True,
) -> None:
    """Configure structlog on top of the standard library logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Use JSON format (True) or console format (False)
        include_traceback: Include exception tracebacks in error logs

    Example:
        configure_logging(log_level="DEBUG")

        log = structlog.get_logger(__name__)
        with LogContext(experiment_id="ucb_all_123", selector="ucb"):
            log.info("search_step", step=1, operator="DeleteStatement")
    """
    processors: list[object] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_timestamp,
        add_experiment_context,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]

    if include_traceback:
        processors.append(structlog.processors.format_exc_info)

    if json_output:
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

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
        force=True,
    )


class LogContext:
    """Context manager binding experiment context to every log event.

    Example:
        with LogContext(experiment_id="pg_llm_7", selector="policy_gradient"):
            loop.run()
    """

    def __init__(self, experiment_id: str | None = None, selector: str | None = None):
        self.experiment_id = experiment_id
        self.selector = selector
        self._experiment_token: object | None = None
        self._selector_token: object | None = None

    def __enter__(self) -> "LogContext":
        if self.experiment_id:
            self._experiment_token = experiment_id_var.set(self.experiment_id)
        if self.selector:
            self._selector_token = selector_var.set(self.selector)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._experiment_token:
            experiment_id_var.reset(self._experiment_token)
        if self._selector_token:
            selector_var.reset(self._selector_token)
