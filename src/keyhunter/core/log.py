"""
structlog setup for the CLI.

By default only errors reach the console so rich progress bars render
cleanly; --verbose switches on debug output.
"""

import logging

import structlog


def configure_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.ERROR

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )


def key_preview(key: str, head: int = 8, tail: int = 4) -> str:
    """Shorten a secret to its first and last few characters"""
    if len(key) <= head + tail:
        return key[:head] + "..."
    return f"{key[:head]}...{key[-tail:]}"
