import httpx
import pytest

from filesdk.clients.authorization import AuthorizationClient
from filesdk.errors import AuthorizationFailedError
from filesdk.models.credential import CommandType


def _client(handler) -> AuthorizationClient:
    return AuthorizationClient("https://files.test/api/", httpx.Client(transport=httpx.MockTransport(handler)))


class TestAuthorizationClient:
    def test_requests_token_with_hints(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(
                200,
                json={"bucketType": "aws", "sas": "secret", "meta": {"containerName": "avatars"}},
            )

        credential = _client(handler).get_credential(
            CommandType.CREATE, bucket_type="aws", file_path="photos", authorization="Bearer abc"
        )

        assert seen["url"].path == "/api/files/token/create"
        assert seen["url"].params["bucketType"] == "aws"
        assert seen["url"].params["filePath"] == "photos"
        assert seen["auth"] == "Bearer abc"
        assert credential.backend_kind == "aws"
        assert credential.container_name == "avatars"

    def test_omits_empty_hints_and_header(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json={"bucketType": "local", "sas": ""})

        _client(handler).get_credential(CommandType.DELETE)
        assert seen["request"].url.query == b""
        assert "authorization" not in seen["request"].headers

    def test_non_200_fails(self):
        client = _client(lambda request: httpx.Response(403, json={"message": "nope"}))
        with pytest.raises(AuthorizationFailedError, match="HTTP 403"):
            client.get_credential(CommandType.CREATE)

    def test_transport_error_fails(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(AuthorizationFailedError):
            _client(handler).get_credential(CommandType.CREATE)

    def test_malformed_payload_fails(self):
        client = _client(lambda request: httpx.Response(200, json={"sas": "x"}))
        with pytest.raises(AuthorizationFailedError, match="Malformed"):
            client.get_credential(CommandType.CREATE)

    def test_non_json_payload_fails(self):
        client = _client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(AuthorizationFailedError, match="Malformed"):
            client.get_credential(CommandType.CREATE)

    def test_expired_credential_fails(self):
        client = _client(
            lambda request: httpx.Response(
                200, json={"bucketType": "aws", "sas": "x", "expiresOn": "2000-01-01T00:00:00Z"}
            )
        )
        with pytest.raises(AuthorizationFailedError, match="expired"):
            client.get_credential(CommandType.CREATE)
