"""The request pipeline: stages, the immutable set of stages, and the driver.

Every stage is a function of (context, request) that reports failure by setting
`req.err`; the driver stops at the first stage that does. `Handlers` bundles one
function per stage so tests can swap a single stage with `dataclasses.replace`.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from oapi_client.core.access_token_type import AccessTokenType
from oapi_client.core.constants import (
    APPLY_APP_TICKET_PATH,
    CONTENT_TYPE_JSON,
    CTX_KEY_HTTP_STATUS_CODE,
    CTX_KEY_REQUEST_ID,
    CTX_KEY_TENANT_KEY,
    CTX_KEY_USER_ACCESS_TOKEN,
    DEFAULT_HTTP_REQUEST_HEADERS,
    ERR_CODE_APP_TICKET_INVALID,
    HTTP_HEADER_CONTENT_TYPE,
    HTTP_HEADER_REQUEST_ID,
    MAX_RETRY_COUNT,
)
from oapi_client.core.context import Context
from oapi_client.exceptions import (
    AccessTokenTypeInvalidError,
    APIError,
    AppTicketEmptyError,
    BodyBuildError,
    InvalidRequestError,
    InvalidResponseError,
    OapiError,
    ResponseDecodeError,
    TenantKeyEmptyError,
    TokenProviderNotFoundError,
    TransportError,
    UserAccessTokenEmptyError,
)
from oapi_client.request.body import build_form_body, build_input_body
from oapi_client.request.form_data import FormData
from oapi_client.request.request import Request
from oapi_client.response.envelope import NoData, decode_envelope
from oapi_client.token import ApplyAppTicketReq

logger = logging.getLogger(__name__)

Stage = Callable[[Context, Request], None]


@dataclass(frozen=True)
class Handlers:
    """The pipeline configuration: one function per stage.

    Attributes:
        init: Resolves defaults on the request.
        validate: Checks credential preconditions; failures end the call.
        build: Materializes the body and the `httpx.Request`.
        sign: Attaches the access token.
        send_request: Hands the request to the transport.
        validate_response: Checks status / content type.
        unmarshal_response: Decodes the response into `req.output`.
        retry: Decides whether the attempt is worth repeating.
        complement: Runs once after everything else, on every exit path.
        max_retry_count: Attempts allowed after the first.
    """

    init: Stage
    validate: Stage
    build: Stage
    sign: Stage
    send_request: Stage
    validate_response: Stage
    unmarshal_response: Stage
    retry: Stage
    complement: Stage
    max_retry_count: int = MAX_RETRY_COUNT

    def handle(self, ctx: Context, req: Request) -> None:
        """Runs the request through the pipeline. The outcome is left on `req`."""
        try:
            self._run(ctx, req)
        except Exception as e:
            # A stage raised instead of reporting through req.err
            logger.exception(f"Unexpected error while handling {req.http_method} {req.http_path}: {e}")
            req.err = e
            req.retryable = False
        finally:
            req.release_body()
            self.complement(ctx, req)

    def _run(self, ctx: Context, req: Request) -> None:
        self.init(ctx, req)
        if req.err is not None:
            return
        self.validate(ctx, req)
        if req.err is not None:
            return
        attempt = 0
        while True:
            attempt += 1
            self.send(ctx, req)
            if not req.retryable or attempt > self.max_retry_count:
                return
            logger.debug(f"[retry] request: {req.http_method} {req.http_path}, attempt: {attempt}, err: {req.err}")
            req.err = None

    def send(self, ctx: Context, req: Request) -> None:
        """One attempt: build, sign, transmit, validate and decode."""
        req.http_response = None
        try:
            self.build(ctx, req)
            if req.err is not None:
                return
            self.sign(ctx, req)
            if req.err is not None:
                return
            self.send_request(ctx, req)
            if req.err is not None:
                return
            self.validate_response(ctx, req)
            if req.err is not None:
                return
            self.unmarshal_response(ctx, req)
        finally:
            self.retry(ctx, req)
            if req.http_response is not None:
                req.http_response.close()


def handle(ctx: Context, req: Request) -> None:
    """Executes a request with the handlers of the context's container."""
    ctx.container.handlers.handle(ctx, req)


# --- Stages ---


def init_func(ctx: Context, req: Request) -> None:
    try:
        req.init()
    except OapiError as e:
        req.err = e
        return
    if req.tenant_key:
        ctx.set(CTX_KEY_TENANT_KEY, req.tenant_key)
    if req.user_access_token:
        ctx.set(CTX_KEY_USER_ACCESS_TOKEN, req.user_access_token)


def validate_func(ctx: Context, req: Request) -> None:
    if req.access_token_type == AccessTokenType.NONE:
        return
    if req.access_token_type not in req.accessible_token_types:
        req.err = AccessTokenTypeInvalidError(
            f"Access token type {req.access_token_type} is not accepted, accepted: "
            f"{sorted(t.value for t in req.accessible_token_types)}"
        )
        return
    if ctx.container.settings.is_isv():
        if req.access_token_type == AccessTokenType.TENANT and not req.tenant_key:
            req.err = TenantKeyEmptyError("Tenant key is empty")
            return
        if req.access_token_type == AccessTokenType.USER and not req.user_access_token:
            req.err = UserAccessTokenEmptyError("User access token is empty")
            return


def _request_timeout(ctx: Context, req: Request) -> Optional[float]:
    candidates = [t for t in (req.timeout, ctx.container.settings.get_http_timeout(), ctx.remaining()) if t is not None]
    return min(candidates) if candidates else None


def build_func(ctx: Context, req: Request) -> None:
    # The body survives retries; only the first attempt materializes it
    if not req.retryable and req.input is not None:
        try:
            if isinstance(req.input, FormData):
                req.body, req.content_type = build_form_body(req.input)
                logger.debug(f"[build] request: {req.http_method} {req.http_path}, body: formdata {req.body!r}")
            else:
                req.body, req.content_type = build_input_body(req.input)
                body_text = req.body.content().decode(errors="replace")
                logger.debug(f"[build] request: {req.http_method} {req.http_path}, body: {body_text}")
        except BodyBuildError as e:
            req.err = e
            return

    headers = dict(DEFAULT_HTTP_REQUEST_HEADERS)
    content = None
    if req.body is not None:
        try:
            req.body.rewind()
        except OSError as e:
            req.err = BodyBuildError(f"Failed to rewind request body: {e}")
            return
        content = req.body.content()
        headers["Content-Length"] = str(req.body.length())
    if req.content_type:
        headers[HTTP_HEADER_CONTENT_TYPE] = req.content_type

    extensions = {}
    timeout = _request_timeout(ctx, req)
    if timeout is not None:
        extensions["timeout"] = httpx.Timeout(timeout).as_dict()

    try:
        req.http_request = httpx.Request(
            req.http_method,
            req.full_url(ctx.container.settings.get_domain()),
            params=req.query_params or None,
            headers=headers,
            content=content,
            extensions=extensions,
        )
    except (httpx.InvalidURL, ValueError, TypeError) as e:
        req.err = InvalidRequestError(f"Failed to build HTTP request: {e}")


def sign_func(ctx: Context, req: Request) -> None:
    token_type = req.access_token_type
    if token_type is None or token_type == AccessTokenType.NONE:
        return
    provider = ctx.container.token_providers.get(token_type)
    if provider is None:
        req.err = TokenProviderNotFoundError(f"No token provider registered for {token_type.value}")
        return
    try:
        req.http_request = provider.acquire_and_attach(ctx, req.http_request, token_type)
    except Exception as e:
        logger.debug(f"[sign] failed to attach {token_type.value}: {e}")
        req.err = e


def send_request_func(ctx: Context, req: Request) -> None:
    cancelled = ctx.err()
    if cancelled is not None:
        req.err = cancelled
        return
    try:
        resp = ctx.container.transport.do(req.http_request)
    except TransportError as e:
        req.err = e
        return
    ctx.set(CTX_KEY_REQUEST_ID, resp.headers.get(HTTP_HEADER_REQUEST_ID, ""))
    ctx.set(CTX_KEY_HTTP_STATUS_CODE, resp.status_code)
    req.http_response = resp


def _read_response(req: Request) -> Optional[bytes]:
    try:
        return req.http_response.read()
    except httpx.HTTPError as e:
        req.err = TransportError(f"Failed to read response body: {e}")
        return None


def validate_response_func(ctx: Context, req: Request) -> None:
    resp = req.http_response
    if req.is_response_stream:
        if resp.status_code != httpx.codes.OK:
            req.err = InvalidResponseError(
                f"response is stream, but status code: {resp.status_code}", status_code=resp.status_code
            )
        return
    content_type = resp.headers.get(HTTP_HEADER_CONTENT_TYPE, "")
    if CONTENT_TYPE_JSON not in content_type:
        body = _read_response(req)
        if body is None:
            return
        req.err = InvalidResponseError(
            f"content-type: {content_type}, is not: {CONTENT_TYPE_JSON}, if is stream, "
            f"please `Request.set_response_stream()`, body: {body.decode(errors='replace')}",
            status_code=resp.status_code,
        )


def unmarshal_response_func(ctx: Context, req: Request) -> None:
    resp = req.http_response
    if req.is_response_stream:
        sink = req.output_stream
        if sink is None or not hasattr(sink, "write"):
            req.err = InvalidRequestError("Request output stream must be a writable binary sink")
            return
        try:
            for chunk in resp.iter_bytes():
                sink.write(chunk)
        except httpx.HTTPError as e:
            req.err = TransportError(f"Failed to read response stream: {e}")
        except OSError as e:
            req.err = e
        return

    body = _read_response(req)
    if body is None:
        return
    logger.debug(
        f"[unmarshal_response] request: {req.http_method} {req.http_path}, "
        f"response body: {body.decode(errors='replace')}"
    )
    try:
        req.output, req.err = decode_envelope(body, req.output_type, req.envelope)
    except ResponseDecodeError as e:
        req.err = e


def retry_func(ctx: Context, req: Request) -> None:
    req.retryable = isinstance(req.err, APIError) and req.err.retryable


def _is_app_ticket_failure(err: Optional[Exception]) -> bool:
    if isinstance(err, APIError):
        return err.code == ERR_CODE_APP_TICKET_INVALID
    return isinstance(err, AppTicketEmptyError)


def complement_func(ctx: Context, req: Request) -> None:
    if req.recover_ticket and _is_app_ticket_failure(req.err):
        apply_app_ticket(ctx)


def apply_app_ticket(ctx: Context) -> None:
    """Asks the platform to push a fresh app ticket, for the benefit of the next call.

    Failures are logged, never raised.
    """
    settings = ctx.container.settings
    req = Request.by_auth(
        APPLY_APP_TICKET_PATH,
        "POST",
        ApplyAppTicketReq(app_id=settings.get_app_id() or "", app_secret=settings.get_app_secret() or ""),
        NoData,
    )
    # A refresh that itself reports a ticket failure must not refresh again
    req.recover_ticket = False
    logger.info("Applying for a new app ticket")
    handle(ctx, req)
    if req.err is not None:
        logger.error(f"Failed to apply app ticket: {req.err}", extra={"request_id": ctx.get_request_id()})


DEFAULT_HANDLERS = Handlers(
    init=init_func,
    validate=validate_func,
    build=build_func,
    sign=sign_func,
    send_request=send_request_func,
    validate_response=validate_response_func,
    unmarshal_response=unmarshal_response_func,
    retry=retry_func,
    complement=complement_func,
)

__all__ = ["DEFAULT_HANDLERS", "Handlers", "Stage", "apply_app_ticket", "handle"]
