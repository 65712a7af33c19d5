# Request pipeline exceptions.

from oapi_client.core.constants import RETRYABLE_ERR_CODES


class OapiError(Exception):
    """Base exception for all request pipeline errors."""

    def __init__(self, *args, detail: str | None = None):
        super().__init__(*args)
        # Use the first arg as detail if detail kwarg is not provided and args exist
        self.detail = detail or (args[0] if args else None)


# --- Precondition errors (never retried) ---


class RequestPreconditionError(OapiError):
    """Raised when a request is missing something it needs before being sent."""

    pass


class AccessTokenTypeInvalidError(RequestPreconditionError):
    """The requested access token type is not one the API accepts."""

    pass


class TenantKeyEmptyError(RequestPreconditionError):
    """An ISV app made a tenant-scoped request without a tenant key."""

    pass


class UserAccessTokenEmptyError(RequestPreconditionError):
    """An ISV app made a user-scoped request without a user access token."""

    pass


class InvalidRequestError(RequestPreconditionError):
    """The request record itself is malformed (bad input, missing output)."""

    pass


class TokenProviderNotFoundError(RequestPreconditionError):
    """No token provider is registered for the requested access token type."""

    pass


class AppTicketEmptyError(OapiError):
    """The app ticket needed to obtain an app access token is not available yet."""

    pass


# --- Transport errors (never retried here) ---


class TransportError(OapiError):
    """The request could not be sent or no response was received."""

    pass


class RequestCancelledError(TransportError):
    """The execution context was cancelled or its deadline passed before sending."""

    pass


# --- Protocol errors ---


class InvalidResponseError(OapiError):
    """The response is not in the format the request expected."""

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(detail, detail=detail)
        self.status_code = status_code


class ResponseDecodeError(OapiError):
    """The response body could not be decoded into the expected envelope."""

    pass


# --- Resource errors ---


class BodyBuildError(OapiError):
    """The request body could not be materialized."""

    pass


# --- API errors ---


class APIError(OapiError):
    """An envelope with a non-zero code returned by the open platform."""

    def __init__(self, code: int, msg: str):
        self.code = code
        self.msg = msg
        super().__init__(f"code: {code}, msg: {msg}", detail=msg)

    @property
    def retryable(self) -> bool:
        """True if re-sending the same call may succeed (an access token was rejected)."""
        return self.code in RETRYABLE_ERR_CODES

    def __repr__(self) -> str:
        return f"APIError(code={self.code}, msg={self.msg!r})"
