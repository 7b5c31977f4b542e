"""Structured logging via structlog.

Configures structlog once at process start. Modules keep logging through
``logging.getLogger(__name__)``; the stdlib bridge routes those records,
along with the ``kubernetes``, ``urllib3`` and ``httpx`` loggers, to the
same stream.

Renderer selection:
  json=False: `ConsoleRenderer` for a human watching a terminal or
               ``kubectl logs``.
  json=True:  `JSONRenderer` for log shippers.

Output goes to stderr. Stdout is reserved for the confirmation lines a
successful run prints.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

# Event keys whose values are replaced before rendering
_SENSITIVE_KEYS = frozenset(
    {"token", "password", "secret_data", "credentials", "assertion"}
)

REDACTED = "[REDACTED]"


def redact_secrets(
    logger: Any,
    method: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor: redact values for sensitive keys.

    Matches on substrings, so ``access_token`` and ``git_credentials``
    are covered too. The ``event`` message itself is never touched.
    """
    for key in list(event_dict.keys()):
        if key == "event":
            continue
        if any(sensitive in key.lower() for sensitive in _SENSITIVE_KEYS):
            event_dict[key] = REDACTED
    return event_dict


def configure_structlog(json: bool = False, level: str = "INFO") -> None:
    """Configure structlog for the process lifetime.

    Calling it more than once is safe; the last call wins.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    # Bridge stdlib logging -> structlog so our modules and third-party
    # libraries render the same way.
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=[
                structlog.stdlib.add_logger_name,
                *shared_processors,
            ],
        )
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    # The Kubernetes REST client logs response bodies at DEBUG, and a
    # Secret response body carries the token.
    logging.getLogger("kubernetes.client.rest").setLevel(max(log_level, logging.INFO))
