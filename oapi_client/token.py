# Token providers: the collaborators that attach credentials to outgoing requests.

import abc
import logging

import httpx
from pydantic import BaseModel, Field

from oapi_client.core.access_token_type import AccessTokenType
from oapi_client.core.constants import CTX_KEY_USER_ACCESS_TOKEN
from oapi_client.core.context import Context
from oapi_client.exceptions import UserAccessTokenEmptyError

logger = logging.getLogger(__name__)


class TokenProvider(abc.ABC):
    """Acquires an access token of one class and attaches it to a request.

    Token acquisition and caching policy belong to the provider. A provider for
    app access tokens raises `AppTicketEmptyError` when it has no app ticket yet,
    which makes the pipeline ask the platform to resend one.
    """

    @abc.abstractmethod
    def acquire_and_attach(
        self, ctx: Context, http_request: httpx.Request, access_token_type: AccessTokenType
    ) -> httpx.Request:
        """
        Returns the request with the credential attached.

        Raises:
            Exception: Any failure aborts the current attempt with that error.
        """
        raise NotImplementedError


def set_bearer(http_request: httpx.Request, token: str) -> httpx.Request:
    http_request.headers["Authorization"] = f"Bearer {token}"
    return http_request


class StaticTokenProvider(TokenProvider):
    """Attaches a fixed token, e.g. one obtained out of band."""

    def __init__(self, token: str) -> None:
        self._token = token

    def acquire_and_attach(
        self, ctx: Context, http_request: httpx.Request, access_token_type: AccessTokenType
    ) -> httpx.Request:
        logger.debug(f"Attaching static {access_token_type.value}")
        return set_bearer(http_request, self._token)


class UserAccessTokenProvider(TokenProvider):
    """Attaches the user access token the request was made with."""

    def acquire_and_attach(
        self, ctx: Context, http_request: httpx.Request, access_token_type: AccessTokenType
    ) -> httpx.Request:
        token = ctx.value(CTX_KEY_USER_ACCESS_TOKEN)
        if not token:
            raise UserAccessTokenEmptyError("User access token is empty")
        return set_bearer(http_request, token)


class ApplyAppTicketReq(BaseModel):
    """Body of the request asking the platform to resend the app ticket."""

    app_id: str = Field(default="")
    app_secret: str = Field(default="")
