from unittest.mock import MagicMock

import httpx
import pytest
from oapi_client.core.access_token_type import AccessTokenType
from oapi_client.core.constants import CTX_KEY_USER_ACCESS_TOKEN
from oapi_client.core.context import Context
from oapi_client.exceptions import UserAccessTokenEmptyError
from oapi_client.token import ApplyAppTicketReq, StaticTokenProvider, UserAccessTokenProvider


@pytest.fixture
def ctx() -> Context:
    return Context(MagicMock())


@pytest.fixture
def http_request() -> httpx.Request:
    return httpx.Request("GET", "https://open.example.com/open-apis/x")


def test_static_provider_sets_bearer(ctx, http_request):
    signed = StaticTokenProvider("a-token").acquire_and_attach(ctx, http_request, AccessTokenType.APP)
    assert signed.headers["Authorization"] == "Bearer a-token"


def test_user_provider_reads_token_from_context(ctx, http_request):
    ctx.set(CTX_KEY_USER_ACCESS_TOKEN, "u-token")
    signed = UserAccessTokenProvider().acquire_and_attach(ctx, http_request, AccessTokenType.USER)
    assert signed.headers["Authorization"] == "Bearer u-token"


def test_user_provider_without_token_raises(ctx, http_request):
    with pytest.raises(UserAccessTokenEmptyError):
        UserAccessTokenProvider().acquire_and_attach(ctx, http_request, AccessTokenType.USER)


def test_apply_app_ticket_body():
    assert ApplyAppTicketReq(app_id="cli_1", app_secret="s").model_dump() == {"app_id": "cli_1", "app_secret": "s"}
