r"""JSON codec converting typed values to and from wire payloads.

The codec is built on pydantic ``TypeAdapter`` so any type pydantic can
validate (models, dataclasses, builtin containers) can be used as a
request or response type.
"""

from __future__ import annotations

__all__ = ["JSON_CONTENT_TYPE", "JsonCodec"]

import json
import logging
from typing import Any

from pydantic import BaseModel, PydanticSchemaGenerationError, TypeAdapter, ValidationError

from typedhttp.exceptions import DecodeError, EncodingError

logger: logging.Logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


class JsonCodec:
    r"""Encode typed values to JSON bytes and decode JSON bytes to typed
    values.

    Request models are serialized by alias so a model declared with a
    camelCase alias generator produces camelCase keys on the wire.

    Example:
        ```pycon
        >>> from pydantic import BaseModel
        >>> from typedhttp.codec import JsonCodec
        >>> class Point(BaseModel):
        ...     x: int
        ...     y: int
        ...
        >>> codec = JsonCodec()
        >>> codec.encode(Point(x=1, y=2))
        b'{"x":1,"y":2}'
        >>> codec.decode(b'{"x":1,"y":2}', Point)
        Point(x=1, y=2)

        ```
    """

    content_type: str = JSON_CONTENT_TYPE

    def __init__(self) -> None:
        self._adapters: dict[Any, TypeAdapter[Any]] = {}

    def adapter(self, tp: Any) -> TypeAdapter[Any]:
        r"""Return the (cached) ``TypeAdapter`` for a type."""
        adapter = self._adapters.get(tp)
        if adapter is None:
            adapter = TypeAdapter(tp)
            self._adapters[tp] = adapter
        return adapter

    def encode(self, value: Any) -> bytes:
        r"""Encode a value to JSON bytes.

        Raises:
            EncodingError: If the value cannot be serialized.
        """
        try:
            if isinstance(value, BaseModel):
                return value.model_dump_json(by_alias=True, exclude_none=True).encode()
            return self.adapter(type(value)).dump_json(value, by_alias=True, exclude_none=True)
        except Exception as exc:
            msg = f"cannot encode {type(value).__name__}: {exc}"
            raise EncodingError(msg, cause=exc) from exc

    def to_fields(self, value: Any) -> dict[str, Any]:
        r"""Return the JSON-compatible field mapping of a request model,
        keyed by serialized name.

        ``None`` valued fields are dropped.

        Raises:
            EncodingError: If the value is not a pydantic model or cannot
                be serialized.
        """
        if not isinstance(value, BaseModel):
            msg = (
                f"cannot extract fields from {type(value).__name__}: "
                "request must be a pydantic model"
            )
            raise EncodingError(msg)
        try:
            return value.model_dump(mode="json", by_alias=True, exclude_none=True)
        except Exception as exc:
            msg = f"cannot extract fields from {type(value).__name__}: {exc}"
            raise EncodingError(msg, cause=exc) from exc

    def decode(self, payload: bytes | str, tp: Any) -> Any:
        r"""Decode a JSON payload into an instance of ``tp``.

        Raises:
            DecodeError: If the payload is not valid JSON for ``tp``.
        """
        try:
            return self.adapter(tp).validate_json(payload)
        except (ValidationError, PydanticSchemaGenerationError) as exc:
            msg = f"cannot decode payload as {_type_name(tp)}: {exc}"
            raise DecodeError(msg, cause=exc) from exc

    def convert(self, value: Any, tp: Any) -> Any:
        r"""Coerce an already-decoded value (e.g. a ``dict`` or raw
        payload) into an instance of ``tp``.

        Raises:
            DecodeError: If the value cannot be coerced.
        """
        if isinstance(value, (bytes, bytearray, str)) and tp not in (str, bytes):
            return self.decode(bytes(value) if isinstance(value, bytearray) else value, tp)
        try:
            return self.adapter(tp).validate_python(value)
        except (ValidationError, PydanticSchemaGenerationError) as exc:
            msg = f"cannot convert {type(value).__name__} to {_type_name(tp)}: {exc}"
            raise DecodeError(msg, cause=exc) from exc

    def try_parse(self, payload: bytes) -> Any:
        r"""Parse a JSON payload without a target type, returning ``None``
        when it is empty or not JSON."""
        if not payload:
            return None
        try:
            return json.loads(payload)
        except ValueError:
            logger.debug("error body is not JSON, keeping it undecoded")
            return None


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", repr(tp))
