"""
Structured logging for the Ripley delivery-commitment checker.

Every module logs through structlog; events are snake_case names with
key/value context and are rendered as one JSON object per line.

Console logs go to stderr: stdout is reserved for the JSON array of result
records printed at the end of a run. Per-run context (sku, attempt, step)
is carried in contextvars so nested workflow code does not need to pass it
around.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional, TextIO

import structlog

SECRET_KEYS = frozenset({"password", "contrasena", "token", "cookie"})
REDACTED = "***"


def _redact_secrets(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def _processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        _redact_secrets,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.EventRenamer("message"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(ensure_ascii=False),
    ]


def _attach(root: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_stdout: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure structlog over the standard logging module.

    Call once at startup; calling again replaces the root handlers.

    - `log_stdout` enables the console handler (stderr unless `stream` is given).
    - `log_file` adds a UTF-8 file handler, creating parent directories.
    - With neither enabled the console handler is still installed, so a run
      is never silent.
    """

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = stream if stream is not None else sys.stderr
    if log_stdout:
        _attach(root, logging.StreamHandler(console), level)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        _attach(root, logging.FileHandler(log_file, encoding="utf-8"), level)

    if not root.handlers:
        _attach(root, logging.StreamHandler(console), level)

    structlog.configure(
        processors=_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def level_from_name(name: str) -> int:
    """Map a LOG_LEVEL string to a logging level; unknown names fall back to INFO."""
    level = logging.getLevelName((name or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Return a structured logger, configuring defaults on first use.

        logger = get_logger(__name__)
        logger.info("login_started", credentials=credentials.masked)
    """

    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name) if name else structlog.get_logger()


def bind_run_context(
    *,
    sku: Optional[str] = None,
    attempt: Optional[int] = None,
    step: Optional[str] = None,
    **extra: Any,
) -> Mapping[str, Any]:
    """Bind sku/attempt/step (plus any extras) for subsequent log events; None values are skipped."""
    context = {k: v for k, v in {"sku": sku, "attempt": attempt, "step": step, **extra}.items() if v is not None}
    structlog.contextvars.bind_contextvars(**context)
    return context


def clear_run_context() -> None:
    structlog.contextvars.clear_contextvars()
