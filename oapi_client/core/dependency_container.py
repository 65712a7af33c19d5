# Dependency Injection Container.

from typing import TYPE_CHECKING, Dict, Optional

import httpx

from oapi_client.core.access_token_type import AccessTokenType
from oapi_client.settings import Settings
from oapi_client.token import TokenProvider, UserAccessTokenProvider
from oapi_client.transport import HttpxTransport, Transport

if TYPE_CHECKING:
    from oapi_client.handlers.handlers import Handlers


class DependencyContainer:
    """Holds the collaborators a request pipeline runs against.

    Everything with an external dependency (network, token stores) lives here so
    that tests can swap it out without touching global state.
    """

    def __init__(
        self,
        settings: Settings,
        transport: Transport,
        token_providers: Optional[Dict[AccessTokenType, TokenProvider]] = None,
        handlers: Optional["Handlers"] = None,
    ) -> None:
        """
        Initializes the container.

        Args:
            settings: Client settings.
            transport: Transport used to send every request.
            token_providers: Provider per access token type. NONE never needs one.
            handlers: The pipeline stages. Defaults to `DEFAULT_HANDLERS`.
        """
        if handlers is None:
            from oapi_client.handlers.handlers import DEFAULT_HANDLERS

            handlers = DEFAULT_HANDLERS
        self.settings = settings
        self.transport = transport
        self.token_providers: Dict[AccessTokenType, TokenProvider] = dict(token_providers or {})
        self.handlers = handlers

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.Client] = None,
        token_providers: Optional[Dict[AccessTokenType, TokenProvider]] = None,
    ) -> "DependencyContainer":
        """Builds a container with an httpx transport and a user access token provider."""
        providers: Dict[AccessTokenType, TokenProvider] = {AccessTokenType.USER: UserAccessTokenProvider()}
        providers.update(token_providers or {})
        return cls(
            settings=settings or Settings(),
            transport=HttpxTransport(http_client),
            token_providers=providers,
        )
