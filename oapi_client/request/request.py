"""The mutable execution record a request carries through the pipeline."""

from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, Optional, Set
from urllib.parse import quote

import httpx

from oapi_client.core.access_token_type import AccessTokenType, EnvelopeShape
from oapi_client.core.constants import OPEN_API_PREFIX
from oapi_client.exceptions import InvalidRequestError
from oapi_client.request.body import RewindableBody


@dataclass
class Request:
    """One call through the pipeline, including nested ticket refresh calls.

    The caller fills in what to call and what to expect back; the pipeline stages
    fill in the execution state (`body`, `http_request`, `http_response`,
    `output`, `retryable`, `err`).

    Attributes:
        http_path: Path below `/open-apis/`, may contain `:name` placeholders.
        http_method: HTTP method.
        access_token_type: The credential class to sign with. Resolved by `init()` when not given.
        accessible_token_types: Credential classes the API accepts.
        input: None, a raw string body, a `FormData`, or any JSON-encodable value.
        output_type: Type the response payload is validated into; None keeps the raw JSON value.
        envelope: Whether the payload is nested under `data` or merged next to `code`/`msg`.
        is_response_stream: The response is an opaque byte stream copied into `output_stream`.
        output_stream: Writable binary sink for stream responses.
        recover_ticket: Whether a ticket failure on this request may trigger a ticket refresh.
        output: The decoded payload.
        retryable: Whether the last attempt failed in a way that re-sending may fix.
        err: The error that aborted the pipeline, if any.
    """

    http_path: str
    http_method: str
    access_token_type: Optional[AccessTokenType] = None
    accessible_token_types: Set[AccessTokenType] = field(default_factory=set)
    input: Any = None
    output_type: Any = None
    envelope: EnvelopeShape = EnvelopeShape.WRAPPED
    is_response_stream: bool = False
    output_stream: Optional[BinaryIO] = None
    tenant_key: str = ""
    user_access_token: str = ""
    path_params: Dict[str, Any] = field(default_factory=dict)
    query_params: Dict[str, Any] = field(default_factory=dict)
    timeout: Optional[float] = None
    recover_ticket: bool = True

    # Execution state
    output: Any = None
    retryable: bool = False
    err: Optional[Exception] = None
    resolved_path: str = ""
    content_type: str = ""
    body: Optional[RewindableBody] = field(default=None, repr=False)
    http_request: Optional[httpx.Request] = field(default=None, repr=False)
    http_response: Optional[httpx.Response] = field(default=None, repr=False)

    @classmethod
    def by_auth(cls, http_path: str, http_method: str, input: Any, output_type: Any = None) -> "Request":
        """A request to an auth endpoint: unsigned, with a flat envelope."""
        return cls(
            http_path=http_path,
            http_method=http_method,
            access_token_type=AccessTokenType.NONE,
            input=input,
            output_type=output_type,
            envelope=EnvelopeShape.FLAT,
        )

    def set_response_stream(self, sink: BinaryIO) -> "Request":
        self.is_response_stream = True
        self.output_stream = sink
        return self

    def init(self) -> None:
        """Resolves the access token type and checks the request is well formed.

        Raises:
            InvalidRequestError: If the method is missing or a path placeholder has no value.
        """
        if not self.http_method:
            raise InvalidRequestError("Request has no HTTP method")
        self.http_method = self.http_method.upper()
        if self.access_token_type is None:
            self.access_token_type = self._resolve_access_token_type()
        elif not self.accessible_token_types and self.access_token_type != AccessTokenType.NONE:
            self.accessible_token_types = {self.access_token_type}
        self._resolve_path()

    def _resolve_access_token_type(self) -> AccessTokenType:
        accessible = self.accessible_token_types
        if not accessible:
            return AccessTokenType.NONE
        if self.user_access_token and AccessTokenType.USER in accessible:
            return AccessTokenType.USER
        for token_type in (AccessTokenType.TENANT, AccessTokenType.APP, AccessTokenType.USER):
            if token_type in accessible:
                return token_type
        return AccessTokenType.NONE

    def _resolve_path(self) -> None:
        segments = []
        for segment in self.http_path.strip("/").split("/"):
            if segment.startswith(":"):
                name = segment[1:]
                if name not in self.path_params:
                    raise InvalidRequestError(f"Path param '{name}' is missing for path '{self.http_path}'")
                segment = quote(str(self.path_params[name]), safe="")
            segments.append(segment)
        self.resolved_path = "/".join(segments)

    def full_url(self, domain: str) -> str:
        path = self.resolved_path or self.http_path.strip("/")
        if path.startswith(("http://", "https://")):
            return path
        return f"{domain.rstrip('/')}/{OPEN_API_PREFIX}/{path}"

    def release_body(self) -> None:
        """Closes (and for temporary files, removes) whatever backs the request body."""
        if self.body is not None:
            self.body.close()

    def raise_for_error(self) -> None:
        if self.err is not None:
            raise self.err
