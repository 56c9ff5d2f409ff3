r"""Core shared logic for the blocking and non-blocking call styles.

This package contains the configuration, the parameter validation and
the call pipeline shared by both call styles.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_FORMAT",
    "DEFAULT_TIMEOUT",
    "Call",
    "CallPipeline",
    "ClientConfig",
    "validate_base_url",
    "validate_format",
    "validate_timeout",
]

from typedhttp.core.config import DEFAULT_FORMAT, DEFAULT_TIMEOUT, ClientConfig
from typedhttp.core.pipeline import Call, CallPipeline
from typedhttp.core.validation import validate_base_url, validate_format, validate_timeout
