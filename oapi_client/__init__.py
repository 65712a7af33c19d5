"""Request-execution core of the open platform API client."""

from oapi_client.core.access_token_type import AccessTokenType, EnvelopeShape
from oapi_client.core.constants import SDK_VERSION
from oapi_client.core.context import Context
from oapi_client.core.dependency_container import DependencyContainer
from oapi_client.core.logging import setup_logging
from oapi_client.exceptions import APIError, OapiError
from oapi_client.handlers.handlers import DEFAULT_HANDLERS, Handlers, handle
from oapi_client.request.form_data import FormData
from oapi_client.request.request import Request
from oapi_client.response.envelope import NoData
from oapi_client.settings import Settings

__version__ = SDK_VERSION

__all__ = [
    "APIError",
    "AccessTokenType",
    "Context",
    "DEFAULT_HANDLERS",
    "DependencyContainer",
    "EnvelopeShape",
    "FormData",
    "Handlers",
    "NoData",
    "OapiError",
    "Request",
    "Settings",
    "handle",
    "setup_logging",
]
