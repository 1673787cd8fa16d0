"""Tests for vendure_sdk.transport.GraphQLTransport.

requests.Session is replaced by a MagicMock so no network is touched.
"""

import json
from unittest.mock import MagicMock

import pytest
import requests

from vendure_sdk.errors import DecodingError, GraphQLError, HttpError, NetworkError
from vendure_sdk.transport import GraphQLTransport, build_payload

ENDPOINT = "https://shop.example.com/shop-api"


def _mock_response(body=None, status=200, headers=None, text=None):
    response = MagicMock()
    response.status_code = status
    response.headers = headers or {}
    response.text = text if text is not None else json.dumps(body)
    if body is None and text is not None:
        response.json.side_effect = ValueError("Expecting value")
    else:
        response.json.return_value = body
    return response


def _transport(response=None, side_effect=None):
    session = MagicMock()
    if side_effect is not None:
        session.post.side_effect = side_effect
    else:
        session.post.return_value = response
    return GraphQLTransport(ENDPOINT, timeout=5, session=session), session


def test_build_payload_omits_empty_parts():
    assert build_payload("{ a }") == {"query": "{ a }"}
    assert build_payload("{ a }", {"id": "1"}, "getA") == {
        "query": "{ a }",
        "variables": {"id": "1"},
        "operationName": "getA",
    }


def test_execute_posts_json_payload():
    transport, session = _transport(_mock_response({"data": {"product": {"id": "1"}}}))

    envelope = transport.execute(
        "query($id: ID!) { product(id: $id) { id } }",
        variables={"id": "1"},
        headers={"Authorization": "Bearer t"},
        params={"languageCode": "de"},
    )

    assert envelope.data == {"product": {"id": "1"}}
    assert envelope.status == 200
    args, kwargs = session.post.call_args
    assert args == (ENDPOINT,)
    assert kwargs["json"] == {"query": "query($id: ID!) { product(id: $id) { id } }", "variables": {"id": "1"}}
    assert kwargs["headers"]["Content-Type"] == "application/json"
    assert kwargs["headers"]["Authorization"] == "Bearer t"
    assert kwargs["params"] == {"languageCode": "de"}
    assert kwargs["timeout"] == 5


def test_response_headers_are_case_insensitive():
    transport, _ = _transport(_mock_response({"data": {}}, headers={"Vendure-Auth-Token": "abc"}))

    envelope = transport.execute("{ a }")

    assert envelope.headers.get("vendure-auth-token") == "abc"


def test_non_2xx_raises_http_error():
    transport, _ = _transport(_mock_response(text="Unauthorized", status=401))

    with pytest.raises(HttpError) as exc_info:
        transport.execute("{ a }")

    assert exc_info.value.status == 401
    assert exc_info.value.body == "Unauthorized"
    assert exc_info.value.is_auth_error


def test_server_error_is_not_auth_error():
    transport, _ = _transport(_mock_response({"errors": []}, status=500))

    with pytest.raises(HttpError) as exc_info:
        transport.execute("{ a }")

    assert exc_info.value.is_auth_error is False


def test_connection_error_raises_network_error():
    transport, _ = _transport(side_effect=requests.exceptions.ConnectionError("refused"))

    with pytest.raises(NetworkError) as exc_info:
        transport.execute("{ a }")

    assert "refused" in str(exc_info.value)


def test_timeout_raises_network_error():
    transport, _ = _transport(side_effect=requests.exceptions.Timeout("slow"))

    with pytest.raises(NetworkError) as exc_info:
        transport.execute("{ a }")

    assert "timed out" in str(exc_info.value)


def test_graphql_errors_win_over_data():
    body = {
        "data": {"product": {"id": "1"}},
        "errors": [{"message": "Field 'x' not found"}, {"message": "Forbidden"}],
    }
    transport, _ = _transport(_mock_response(body))

    with pytest.raises(GraphQLError) as exc_info:
        transport.execute("{ product { id x } }")

    assert exc_info.value.messages == ["Field 'x' not found", "Forbidden"]
    assert str(exc_info.value) == "GraphQL error: Field 'x' not found; Forbidden"


def test_empty_errors_array_is_success():
    transport, _ = _transport(_mock_response({"data": {"a": 1}, "errors": []}))

    assert transport.execute("{ a }").data == {"a": 1}


def test_invalid_json_raises_decoding_error():
    transport, _ = _transport(_mock_response(text="<html>oops</html>"))

    with pytest.raises(DecodingError):
        transport.execute("{ a }")


def test_non_object_body_raises_decoding_error():
    transport, _ = _transport(_mock_response([1, 2, 3]))

    with pytest.raises(DecodingError):
        transport.execute("{ a }")


def test_close_closes_session():
    transport, session = _transport(_mock_response({"data": {}}))
    transport.close()
    session.close.assert_called_once()
