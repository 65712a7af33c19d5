"""Response envelope models and the two fixed decode paths.

Wrapped:  {"code": 0, "msg": "ok", "data": {...output...}}
Flat:     {"code": 0, "msg": "ok", ...output fields...}
"""

import functools
import json
import logging
from typing import Any, Generic, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, ValidationInfo, field_validator

from oapi_client.core.access_token_type import EnvelopeShape
from oapi_client.core.constants import ERR_CODE_OK
from oapi_client.exceptions import APIError, ResponseDecodeError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ERROR_FIELD_NAMES = ("code", "msg")


class ErrorFields(BaseModel):
    """The status part every envelope carries."""

    code: int = ERR_CODE_OK
    msg: str = ""

    model_config = ConfigDict(extra="ignore")

    @field_validator("code", "msg", mode="before")
    @classmethod
    def null_as_zero_value(cls, value: Any, info: ValidationInfo) -> Any:
        # An explicit null reads as an absent field
        if value is None:
            return ERR_CODE_OK if info.field_name == "code" else ""
        return value

    def to_error(self) -> Optional[APIError]:
        if self.code == ERR_CODE_OK:
            return None
        return APIError(self.code, self.msg)


class WrappedEnvelope(ErrorFields, Generic[T]):
    """An envelope whose payload is nested under `data`."""

    data: Optional[T] = None


class NoData(BaseModel):
    """Output type for calls that return nothing besides the status."""

    model_config = ConfigDict(extra="ignore")


@functools.lru_cache(maxsize=256)
def _wrapped_model(output_type: Any) -> Type[WrappedEnvelope]:
    return WrappedEnvelope[Any if output_type is None else output_type]


@functools.lru_cache(maxsize=256)
def _output_adapter(output_type: Any) -> TypeAdapter:
    return TypeAdapter(output_type)


def _decode_wrapped(payload: dict, output_type: Any) -> Any:
    return _wrapped_model(output_type).model_validate(payload).data


def _decode_flat(payload: dict, output_type: Any) -> Any:
    fields = {k: v for k, v in payload.items() if k not in ERROR_FIELD_NAMES}
    if output_type is None:
        return fields
    return _output_adapter(output_type).validate_python(fields)


def decode_envelope(body: bytes, output_type: Any, shape: EnvelopeShape) -> Tuple[Any, Optional[APIError]]:
    """Splits a JSON response body into (output, error).

    A zero code yields the validated output and no error. A non-zero code yields
    an `APIError`; the output is then whatever could be decoded, or None.

    Args:
        body: The raw response body.
        output_type: Type the payload is validated into; None keeps the raw JSON value.
        shape: Where the payload sits in the envelope.

    Returns:
        The decoded output and the API error, if any.

    Raises:
        ResponseDecodeError: If the body is not a JSON object, the status fields are
            malformed, or a successful payload does not match `output_type`.
    """
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise ResponseDecodeError(f"Response body is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise ResponseDecodeError(f"Response body is not a JSON object: {type(payload).__name__}")

    try:
        error = ErrorFields.model_validate(payload).to_error()
    except ValidationError as e:
        raise ResponseDecodeError(f"Response envelope has malformed code/msg: {e}") from e

    decode = _decode_flat if shape == EnvelopeShape.FLAT else _decode_wrapped
    try:
        output = decode(payload, output_type)
    except ValidationError as e:
        if error is None:
            raise ResponseDecodeError(f"Response payload does not match {output_type!r}: {e}") from e
        # The payload of a failed call is not guaranteed to follow the output schema
        logger.debug(f"Ignoring undecodable payload of failed response ({error}): {e}")
        output = None
    return output, error
