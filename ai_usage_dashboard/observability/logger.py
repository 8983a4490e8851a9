"""
Structured logging setup.

Event-style logs rendered as JSON lines on stderr so CLI output stays clean.
"""

import logging
import sys

import structlog


def _stderr_logger_factory(*args):
    # Look up stderr per call; it may be swapped after configuration.
    return structlog.PrintLogger(file=sys.stderr)


def setup_logging(level: int = logging.WARNING) -> None:
    """Configure structlog for the process."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )


def get_logger(name: str = "ai_usage_dashboard"):
    return structlog.get_logger(name)
