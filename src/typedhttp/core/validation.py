r"""Parameter validation utilities for the service client.

This module provides validation functions for the client parameters to
ensure they meet the required constraints before any call is made.
"""

from __future__ import annotations

__all__ = ["validate_base_url", "validate_format", "validate_timeout"]

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

_FORMAT_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_timeout(timeout: float | httpx.Timeout) -> None:
    """Validate timeout parameter.

    Args:
        timeout: Maximum seconds to wait for server responses.
            Must be > 0 if provided as a numeric value.

    Raises:
        ValueError: If timeout is a numeric value <= 0.

    Example:
        ```pycon
        >>> from typedhttp.core.validation import validate_timeout
        >>> validate_timeout(10.0)
        >>> validate_timeout(30)
        >>> validate_timeout(0)  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        ValueError: timeout must be > 0, got 0

        ```
    """
    if isinstance(timeout, (int, float)) and timeout <= 0:
        msg = f"timeout must be > 0, got {timeout}"
        raise ValueError(msg)


def validate_base_url(base_url: str) -> str:
    """Validate a base URL and normalize it to end with ``/``.

    Args:
        base_url: The scheme, host, port and optional path prefix every
            relative path is resolved against.

    Returns:
        The base URL ending with ``/``.

    Raises:
        ValueError: If the base URL is not an absolute http(s) URL.

    Example:
        ```pycon
        >>> from typedhttp.core.validation import validate_base_url
        >>> validate_base_url("http://localhost:8080")
        'http://localhost:8080/'
        >>> validate_base_url("https://api.example.com/v1/")
        'https://api.example.com/v1/'

        ```
    """
    if not base_url.startswith(("http://", "https://")):
        msg = f"base_url must be an absolute http(s) URL, got {base_url!r}"
        raise ValueError(msg)
    return base_url if base_url.endswith("/") else f"{base_url}/"


def validate_format(fmt: str) -> None:
    """Validate the format segment used by the default route convention.

    Raises:
        ValueError: If the format is empty or is not a single path segment.
    """
    if not _FORMAT_PATTERN.match(fmt):
        msg = f"format must be a non-empty path segment, got {fmt!r}"
        raise ValueError(msg)
