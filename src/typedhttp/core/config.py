r"""Configuration dataclass and defaults for ServiceClient.

This module provides configuration constants and a dataclass-based
configuration object for the ``ServiceClient`` class.
"""

from __future__ import annotations

__all__ = ["DEFAULT_FORMAT", "DEFAULT_TIMEOUT", "ClientConfig"]

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from typedhttp.core.validation import validate_format, validate_timeout
from typedhttp.filters import FilterChain

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from typedhttp.filters import (
        RequestFilter,
        ResponseFilter,
        ResultsFilter,
        ResultsFilterResponse,
    )


# Default timeout in seconds for HTTP requests
# Calls exceeding it fail with RequestTimeoutError
DEFAULT_TIMEOUT = 10.0

# Format segment of the default "{format}/reply/{RequestName}" route
DEFAULT_FORMAT = "json"


@dataclass
class ClientConfig:
    """Configuration for ServiceClient.

    Args:
        timeout: Maximum seconds to wait for the server response. Only
            used for the httpx clients created by ``ServiceClient``.
            Must be > 0.
        format: Format segment of the default route convention.
        request_filter: Optional handler called with the outgoing request.
        results_filter: Optional handler that can supply a result without
            a network call.
        results_filter_response: Optional handler called with the reply and
            the decoded result of each network call.
        response_filter: Optional handler called with the decoded result
            and the reply.
        on_filter_error: Optional callback receiving the error of a failed
            ``results_filter_response`` handler.

    Example:
        ```pycon
        >>> from typedhttp.core.config import ClientConfig
        >>> config = ClientConfig()  # Use defaults
        >>> config.timeout
        10.0
        >>> config = ClientConfig(timeout=5.0)
        >>> merged = config.merge(timeout=30.0)  # Override specific parameters
        >>> merged.timeout
        30.0
        >>> config.timeout  # Original unchanged
        5.0

        ```
    """

    timeout: float | httpx.Timeout = DEFAULT_TIMEOUT
    format: str = DEFAULT_FORMAT
    request_filter: RequestFilter | None = None
    results_filter: ResultsFilter | None = None
    results_filter_response: ResultsFilterResponse | None = None
    response_filter: ResponseFilter | None = None
    on_filter_error: Callable[[Exception], None] | None = None

    def __post_init__(self) -> None:
        """Validate configuration parameters after initialization.

        Raises:
            ValueError: If any parameter fails validation.
        """
        validate_timeout(self.timeout)
        validate_format(self.format)

    def merge(self, **overrides: Any) -> ClientConfig:
        """Create a new config with specified parameters overridden.

        Only non-None override values are applied.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new ClientConfig instance with overrides applied.
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary format.

        Returns:
            Dictionary with the configuration parameters.

        Example:
            ```pycon
            >>> from typedhttp.core.config import ClientConfig
            >>> params = ClientConfig(format="xml").to_dict()
            >>> params["format"]
            'xml'

            ```
        """
        return {
            "timeout": self.timeout,
            "format": self.format,
            "request_filter": self.request_filter,
            "results_filter": self.results_filter,
            "results_filter_response": self.results_filter_response,
            "response_filter": self.response_filter,
            "on_filter_error": self.on_filter_error,
        }

    def to_filter_chain(self) -> FilterChain:
        """Return a new filter chain holding the configured handlers."""
        return FilterChain(
            request_filter=self.request_filter,
            results_filter=self.results_filter,
            results_filter_response=self.results_filter_response,
            response_filter=self.response_filter,
            on_filter_error=self.on_filter_error,
        )
