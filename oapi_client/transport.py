# Transport: the collaborator that puts requests on the wire.

import abc
import logging
from typing import Optional

import httpx

from oapi_client.exceptions import TransportError

logger = logging.getLogger(__name__)


class Transport(abc.ABC):
    """Sends a fully built request and returns the (unread) response."""

    @abc.abstractmethod
    def do(self, http_request: httpx.Request) -> httpx.Response:
        """
        Raises:
            TransportError: If no response was received.
        """
        raise NotImplementedError

    def close(self) -> None:
        pass


class HttpxTransport(Transport):
    """Transport backed by a shared `httpx.Client`.

    Responses are returned streaming; the pipeline reads and closes them.
    """

    def __init__(self, client: Optional[httpx.Client] = None) -> None:
        self.client = client or httpx.Client()

    def do(self, http_request: httpx.Request) -> httpx.Response:
        try:
            return self.client.send(http_request, stream=True)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout error during {http_request.method} {http_request.url}: {e}")
            raise TransportError(f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"Transport error during {http_request.method} {http_request.url}: {e}")
            raise TransportError(f"Request failed: {e}") from e

    def close(self) -> None:
        self.client.close()
