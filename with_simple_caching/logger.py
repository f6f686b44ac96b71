"""Structured logging using structlog.

The library only ever calls `get_logger`. Applications that don't configure
structlog themselves may call `setup_logging()` to get the single-line format
below; everyone else keeps their own structlog configuration.
"""

import inspect
import logging
import os

import structlog

from with_simple_caching.config import settings

# frames belonging to the logging machinery, skipped when locating the caller
_INTERNAL_MODULES = ("structlog", "logging", "with_simple_caching.logger")


def _add_caller_info(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    """Add `file:function:line` of the code that logged, in debug mode only."""
    if not settings.debug:
        return event_dict

    frame = inspect.currentframe()
    try:
        while frame is not None:
            frame = frame.f_back
            if frame is None or frame.f_globals.get("__name__", "").startswith(_INTERNAL_MODULES):
                continue
            filename = os.path.basename(frame.f_code.co_filename)
            event_dict["caller"] = f"{filename}:{frame.f_code.co_name}:{frame.f_lineno}"
            break
    finally:
        del frame

    return event_dict


def _render_single_line(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> str:
    """
    Render one event as a single line.

    e.g. `DEBUG: cache namespace=get_weather cache_event=hit duration_ms=0.012`
    """
    level = event_dict.pop("level", method_name).upper()
    event = event_dict.pop("event", "")
    caller = event_dict.pop("caller", None)

    parts = [f"{level}:"]
    if caller:
        parts.append(f"[{caller}]")
    parts.append(str(event))
    parts.extend(f"{k}={v}" for k, v in event_dict.items())
    return " ".join(parts)


def setup_logging(level: int | None = None) -> None:
    """
    Configure structlog with the library's log format.

    - Context variables are merged, so callers can bind request context
    - Events below `level` are dropped (DEBUG when WITH_SIMPLE_CACHING_DEBUG is set,
      INFO otherwise), which hides the per-call cache events
    - Each event is printed as one key=value line
    """
    if level is None:
        level = logging.DEBUG if settings.debug else logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            _add_caller_info,
            _render_single_line,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,  # Allow reconfiguration
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """
    Get a logger instance.

    Args:
        name: Optional logger name, typically __name__ of the module.

    Returns:
        A bound structlog logger instance.
    """
    return structlog.get_logger(name)
