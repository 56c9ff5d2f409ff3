r"""Utility functions for error translation and structured logging."""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "build_status_error",
    "clear_correlation_id",
    "get_correlation_id",
    "log_structured",
    "set_correlation_id",
    "translate_transport_error",
    "wrap_filter_error",
]

from typedhttp.utils.exceptions import (
    build_status_error,
    translate_transport_error,
    wrap_filter_error,
)
from typedhttp.utils.structured_logging import (
    StructuredFormatter,
    clear_correlation_id,
    get_correlation_id,
    log_structured,
    set_correlation_id,
)
