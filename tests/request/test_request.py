import io

import pytest
from oapi_client.core.access_token_type import AccessTokenType, EnvelopeShape
from oapi_client.exceptions import InvalidRequestError
from oapi_client.request.form_data import FormData
from oapi_client.request.request import Request

DOMAIN = "https://open.example.com"


def test_explicit_token_type_becomes_the_accepted_set():
    req = Request("im/v1/chats", "post", access_token_type=AccessTokenType.TENANT)
    req.init()
    assert req.http_method == "POST"
    assert req.accessible_token_types == {AccessTokenType.TENANT}


def test_no_accepted_types_means_no_token():
    req = Request("im/v1/chats", "GET")
    req.init()
    assert req.access_token_type == AccessTokenType.NONE


@pytest.mark.parametrize(
    "accessible, user_token, expected",
    [
        ({AccessTokenType.TENANT, AccessTokenType.USER}, "u-token", AccessTokenType.USER),
        ({AccessTokenType.TENANT, AccessTokenType.USER}, "", AccessTokenType.TENANT),
        ({AccessTokenType.APP, AccessTokenType.USER}, "", AccessTokenType.APP),
        ({AccessTokenType.USER}, "", AccessTokenType.USER),
    ],
)
def test_token_type_resolution(accessible, user_token, expected):
    req = Request("x", "GET", accessible_token_types=accessible, user_access_token=user_token)
    req.init()
    assert req.access_token_type == expected


def test_missing_method_is_rejected():
    with pytest.raises(InvalidRequestError):
        Request("x", "").init()


def test_path_params_are_substituted_and_quoted():
    req = Request("im/v1/chats/:chat_id/members", "GET", path_params={"chat_id": "oc_a/b"})
    req.init()
    assert req.full_url(DOMAIN) == f"{DOMAIN}/open-apis/im/v1/chats/oc_a%2Fb/members"


def test_missing_path_param_is_rejected():
    req = Request("im/v1/chats/:chat_id", "GET")
    with pytest.raises(InvalidRequestError, match="chat_id"):
        req.init()


def test_absolute_url_is_left_alone():
    req = Request("https://other.example.com/hook", "POST")
    req.init()
    assert req.full_url(DOMAIN) == "https://other.example.com/hook"


def test_by_auth_builds_unsigned_flat_request():
    req = Request.by_auth("auth/v3/app_access_token/internal", "POST", {"app_id": "a"})
    assert req.access_token_type == AccessTokenType.NONE
    assert req.envelope == EnvelopeShape.FLAT


def test_set_response_stream():
    sink = io.BytesIO()
    req = Request("drive/v1/files/:token/download", "GET").set_response_stream(sink)
    assert req.is_response_stream
    assert req.output_stream is sink


def test_raise_for_error():
    req = Request("x", "GET")
    req.raise_for_error()
    req.err = InvalidRequestError("boom")
    with pytest.raises(InvalidRequestError):
        req.raise_for_error()


def test_form_data_reports_streams():
    form = FormData().add_file("a", b"bytes")
    assert not form.has_stream()
    form.add_file("b", io.BytesIO(b"stream"))
    assert form.has_stream()
    assert [f.field_name for f in form.files()] == ["a", "b"]
