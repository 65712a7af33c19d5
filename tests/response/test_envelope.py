"""Tests for the wrapped and flat envelope decode paths."""

import json
from typing import Optional

import pytest
from pydantic import BaseModel
from oapi_client.core.access_token_type import EnvelopeShape
from oapi_client.core.constants import ERR_CODE_APP_TICKET_INVALID, ERR_CODE_TENANT_ACCESS_TOKEN_INVALID
from oapi_client.exceptions import APIError, ResponseDecodeError
from oapi_client.request.body import build_input_body
from oapi_client.response.envelope import NoData, decode_envelope


class Named(BaseModel):
    name: str


class Chat(BaseModel):
    chat_id: str
    name: str
    members: list[str] = []
    description: Optional[str] = None


class TokenResp(BaseModel):
    tenant_access_token: str
    expire: int


def test_wrapped_round_trip_of_encoded_input():
    chat = Chat(chat_id="oc_1", name="eng", members=["ou_1", "ou_2"])
    body, _ = build_input_body(chat)
    echoed = b'{"code": 0, "msg": "ok", "data": ' + body.data + b"}"

    output, error = decode_envelope(echoed, Chat, EnvelopeShape.WRAPPED)

    assert error is None
    assert output == chat


def test_flat_decode_merges_fields_next_to_code():
    output, error = decode_envelope(b'{"code":0,"msg":"ok","name":"x"}', Named, EnvelopeShape.FLAT)
    assert error is None
    assert output == Named(name="x")


def test_flat_decode_of_token_response():
    body = json.dumps({"code": 0, "msg": "ok", "tenant_access_token": "t-abc", "expire": 7200}).encode()
    output, error = decode_envelope(body, TokenResp, EnvelopeShape.FLAT)
    assert error is None
    assert output.tenant_access_token == "t-abc"
    assert output.expire == 7200


def test_untyped_output_keeps_raw_json():
    output, _ = decode_envelope(b'{"code":0,"data":{"a":[1,2]}}', None, EnvelopeShape.WRAPPED)
    assert output == {"a": [1, 2]}
    output, _ = decode_envelope(b'{"code":0,"msg":"ok","a":1}', None, EnvelopeShape.FLAT)
    assert output == {"a": 1}


def test_no_data_output():
    output, error = decode_envelope(b'{"code":0,"msg":"ok"}', NoData, EnvelopeShape.FLAT)
    assert error is None
    assert isinstance(output, NoData)


@pytest.mark.parametrize("shape", [EnvelopeShape.WRAPPED, EnvelopeShape.FLAT])
def test_nonzero_code_yields_api_error(shape):
    body = json.dumps({"code": ERR_CODE_APP_TICKET_INVALID, "msg": "app ticket invalid"}).encode()
    _, error = decode_envelope(body, Named, shape)
    assert isinstance(error, APIError)
    assert error.code == ERR_CODE_APP_TICKET_INVALID
    assert error.msg == "app ticket invalid"
    assert not error.retryable


def test_token_invalid_code_is_retryable():
    body = json.dumps({"code": ERR_CODE_TENANT_ACCESS_TOKEN_INVALID, "msg": "invalid token"}).encode()
    _, error = decode_envelope(body, None, EnvelopeShape.WRAPPED)
    assert error.retryable


def test_mismatched_payload_on_success_raises():
    with pytest.raises(ResponseDecodeError):
        decode_envelope(b'{"code":0,"data":{"nope":1}}', Named, EnvelopeShape.WRAPPED)


def test_mismatched_payload_on_failure_still_reports_api_error():
    output, error = decode_envelope(b'{"code":1000,"msg":"bad","data":{"nope":1}}', Named, EnvelopeShape.WRAPPED)
    assert output is None
    assert error.code == 1000


@pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b'{"code": "abc"}'])
def test_malformed_envelope_raises(body):
    with pytest.raises(ResponseDecodeError):
        decode_envelope(body, Named, EnvelopeShape.WRAPPED)


@pytest.mark.parametrize(
    "body, shape",
    [
        (b'{"code":0,"msg":null,"data":{"name":"x"}}', EnvelopeShape.WRAPPED),
        (b'{"code":null,"msg":"ok","data":{"name":"x"}}', EnvelopeShape.WRAPPED),
        (b'{"code":null,"msg":null,"name":"x"}', EnvelopeShape.FLAT),
    ],
)
def test_null_status_fields_read_as_success(body, shape):
    output, error = decode_envelope(body, Named, shape)
    assert error is None
    assert output == Named(name="x")


def test_null_msg_on_failure_keeps_code():
    _, error = decode_envelope(b'{"code":1000,"msg":null}', None, EnvelopeShape.WRAPPED)
    assert error.code == 1000
    assert error.msg == ""


@pytest.mark.parametrize("code", [ERR_CODE_APP_TICKET_INVALID, 99991668, 1000])
def test_codes_outside_the_token_refresh_set_are_not_retryable(code):
    _, error = decode_envelope(json.dumps({"code": code, "msg": "x"}).encode(), None, EnvelopeShape.WRAPPED)
    assert not error.retryable
