import httpx
import pytest
from oapi_client.exceptions import TransportError
from oapi_client.transport import HttpxTransport


def test_do_returns_unread_response():
    transport = HttpxTransport(httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(201))))
    response = transport.do(httpx.Request("GET", "https://open.example.com/x"))
    try:
        assert response.status_code == 201
        assert response.read() == b""
    finally:
        response.close()
        transport.close()


@pytest.mark.parametrize(
    "exc",
    [httpx.ConnectError("refused"), httpx.ReadTimeout("slow"), httpx.RemoteProtocolError("garbage")],
)
def test_httpx_errors_become_transport_errors(exc):
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc

    transport = HttpxTransport(httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(TransportError) as info:
        transport.do(httpx.Request("GET", "https://open.example.com/x"))
    assert info.value.__cause__ is exc
