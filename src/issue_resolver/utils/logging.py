"""Structured logging for the resolver.

Every entry passes through a sanitizer that redacts GitHub credentials,
including the literal token the adapter authenticates with. Interactive
runs render coloured console lines on stderr; the service usually logs
JSON for aggregation. The traversal binds ``org`` onto nested entries.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from enum import StrEnum
from pathlib import Path
from typing import Any

import structlog
from structlog.typing import Processor

from issue_resolver._version import __version__
from issue_resolver.utils.security import SecretRedactor


class LogFormat(StrEnum):
    """Log output format options."""

    JSON = "json"
    CONSOLE = "console"


class LogLevel(StrEnum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


_redactor = SecretRedactor()


def register_secret(secret: str) -> None:
    """Redact ``secret`` verbatim from all log entries written from now on."""
    _redactor.add_secret(secret)


def sanitize_log_value(value: Any) -> Any:
    """Redact credentials from a log value, descending into dicts, lists and tuples."""
    if isinstance(value, str):
        return _redactor.redact(value)
    if isinstance(value, dict):
        return {key: sanitize_log_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize_log_value(item) for item in value)
    return value


def secret_sanitizer(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor redacting credentials from every field."""
    for key, value in event_dict.items():
        event_dict[key] = sanitize_log_value(value)
    return event_dict


def add_context_processor(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Tag every entry with the service name and version."""
    event_dict["service"] = "issue-resolver"
    event_dict["version"] = __version__
    return event_dict


def _renderer(log_format: LogFormat) -> Processor:
    if log_format == LogFormat.JSON:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True, exception_formatter=structlog.dev.plain_traceback
    )


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    log_format: LogFormat | str = LogFormat.JSON,
    file_path: Path | str | None = None,
    file_enabled: bool = False,
) -> None:
    """Route structlog through stdlib logging to stderr and optionally a file.

    Args:
        level: Minimum level, as a LogLevel or its name in any case.
        log_format: "json" or "console".
        file_path: Log file, created with its parent directory if needed.
        file_enabled: Whether to write to ``file_path`` as well.
    """
    level = LogLevel(str(level).upper())
    log_format = LogFormat(str(log_format).lower())
    numeric_level = logging.getLevelName(level.value)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_context_processor,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            secret_sanitizer,
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _renderer(log_format),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # stdout is reserved for command output
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    file_error: OSError | None = None
    if file_enabled and file_path:
        path = Path(file_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(path))
        except OSError as e:
            file_error = e

    logging.basicConfig(format="%(message)s", level=numeric_level, handlers=handlers, force=True)

    # httpx logs every request URL at INFO
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))

    if file_error is not None:
        structlog.get_logger().warning(
            "log_file_unavailable", path=str(file_path), error=str(file_error)
        )


def bind_context(**kwargs: Any) -> None:
    """Attach identifiers such as ``org`` to every later entry in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove identifiers attached with bind_context."""
    structlog.contextvars.unbind_contextvars(*keys)
