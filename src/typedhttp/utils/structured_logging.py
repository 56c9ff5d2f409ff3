r"""Structured logging utilities for machine-readable log output.

The pipeline logs each call with structured fields (``status_code``,
``cache_key``). These fields are ignored by the default formatter and
emitted as JSON keys by ``StructuredFormatter``, together with an
optional correlation id tracking the calls of one logical operation.

Structured logging is opt-in:

```python
import logging
from typedhttp.utils.structured_logging import StructuredFormatter, set_correlation_id

handler = logging.StreamHandler()
handler.setFormatter(StructuredFormatter())
logger = logging.getLogger("typedhttp")
logger.addHandler(handler)
logger.setLevel(logging.DEBUG)

set_correlation_id("order-42")
```
"""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "get_correlation_id",
    "log_structured",
    "set_correlation_id",
]

import contextvars
import json
import logging
import time
from typing import Any

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "typedhttp_correlation_id", default=None
)

# Attributes every LogRecord has; anything else was passed through ``extra``
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}


def get_correlation_id() -> str | None:
    """Get the correlation ID of the current context.

    Example:
        ```pycon
        >>> from typedhttp.utils.structured_logging import (
        ...     clear_correlation_id,
        ...     get_correlation_id,
        ...     set_correlation_id,
        ... )
        >>> set_correlation_id("req-123")
        >>> get_correlation_id()
        'req-123'
        >>> clear_correlation_id()
        >>> get_correlation_id()

        ```
    """
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context.

    The value lives in a context variable, so concurrent threads and
    asyncio tasks each see their own.
    """
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID for the current context."""
    _correlation_id.set(None)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Each record becomes one JSON object with the keys ``timestamp``,
    ``level``, ``logger``, ``message``, ``module``, ``function`` and
    ``line``, plus ``correlation_id`` when set, ``exception`` when the
    record carries exception info, and every field passed through
    ``extra``.

    Example:
        ```pycon
        >>> import json
        >>> import logging
        >>> from typedhttp.utils.structured_logging import StructuredFormatter
        >>> record = logging.LogRecord(
        ...     "typedhttp", logging.DEBUG, __file__, 1, "GET completed", (), None
        ... )
        >>> record.status_code = 200
        >>> data = json.loads(StructuredFormatter().format(record))
        >>> data["message"], data["status_code"]
        ('GET completed', 200)

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        correlation_id = get_correlation_id()
        if correlation_id is not None:
            log_data["correlation_id"] = correlation_id
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_data[key] = value
        return json.dumps(log_data, default=str)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        """Format the record timestamp as ISO 8601 UTC with milliseconds."""
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(logger: logging.Logger, level: int, message: str, **extra: Any) -> None:
    """Log a message with structured fields.

    Args:
        logger: Logger to use.
        level: Log level (e.g., logging.DEBUG).
        message: Log message.
        **extra: Structured fields attached to the record.
    """
    if logger.isEnabledFor(level):
        logger.log(level, message, extra=extra)
