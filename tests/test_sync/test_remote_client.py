"""Unit tests for RemoteClient (HTTP calls are mocked)."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from game_translator.remote import RemoteClient, UploadRequest

BASE_URL = "https://translations.example.org/api/v1"
REQUEST = "game_translator.remote.client.requests.request"


@pytest.fixture
def client():
    return RemoteClient(BASE_URL + "/", token="secret", timeout=5)


def _response(status_code=200, json_data=None, text="", headers=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    if json_data is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = json_data
    resp.text = text
    resp.headers = headers or {}
    return resp


# ============================================================================
# REQUEST PLUMBING
# ============================================================================


@pytest.mark.unit
class TestMakeRequest:
    def test_url_headers_and_options(self, client):
        with patch(REQUEST, return_value=_response(json_data={})) as mock:
            client._make_request("GET", "/translations/1/check")
        kwargs = mock.call_args[1]
        assert kwargs["url"] == f"{BASE_URL}/translations/1/check"
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert kwargs["timeout"] == 5
        assert kwargs["allow_redirects"] is False

    def test_anonymous_client_sends_no_token(self):
        with patch(REQUEST, return_value=_response(json_data={})) as mock:
            RemoteClient(BASE_URL)._make_request("GET", "/x")
        assert "Authorization" not in mock.call_args[1]["headers"]

    def test_error_message_from_body(self, client):
        with patch(REQUEST, return_value=_response(403, {"error": "Forbidden"})):
            result = client._make_request("GET", "/x")
        assert result["success"] is False
        assert result["error"] == "Forbidden"
        assert result["status_code"] == 403

    def test_generic_error_message(self, client):
        with patch(REQUEST, return_value=_response(500)):
            result = client._make_request("GET", "/x")
        assert result["error"] == "Request failed with status 500"

    @pytest.mark.parametrize(
        "error, fragment",
        [
            (requests.exceptions.ConnectionError, "Cannot connect"),
            (requests.exceptions.Timeout, "timed out"),
            (requests.exceptions.RequestException("boom"), "Request failed"),
        ],
    )
    def test_transport_errors_never_raise(self, client, error, fragment):
        with patch(REQUEST, side_effect=error):
            result = client._make_request("GET", "/x")
        assert result["success"] is False
        assert fragment in result["error"]
        assert result["status_code"] == 0


# ============================================================================
# ENDPOINTS
# ============================================================================


@pytest.mark.unit
class TestCheckUpdate:
    def test_has_update(self, client):
        body = {"has_update": True, "file_hash": "h2", "line_count": 12}
        with patch(REQUEST, return_value=_response(json_data=body)) as mock:
            check = client.check_update(7, "h1")
        assert check.success and check.has_update
        assert check.file_hash == "h2"
        assert check.line_count == 12
        assert mock.call_args[1]["params"] == {"hash": "h1"}
        assert mock.call_args[1]["headers"]["If-None-Match"] == '"h1"'

    def test_not_modified(self, client):
        with patch(REQUEST, return_value=_response(304)):
            check = client.check_update(7, "h1")
        assert check.success
        assert check.has_update is False
        assert check.file_hash == "h1"

    def test_failure(self, client):
        with patch(REQUEST, return_value=_response(404, {"message": "Not found"})):
            check = client.check_update(7, "h1")
        assert check.success is False
        assert check.error == "Not found"


@pytest.mark.unit
class TestDownload:
    def test_content_and_etag(self, client):
        resp = _response(200, text='{"_uuid": "u"}', headers={"ETag": 'W/"abc123"'})
        with patch(REQUEST, return_value=resp):
            download = client.download(7)
        assert download.success
        assert download.content == '{"_uuid": "u"}'
        assert download.file_hash == "abc123"

    def test_not_modified(self, client):
        with patch(REQUEST, return_value=_response(304)):
            download = client.download(7, "abc")
        assert download.not_modified
        assert download.content is None


@pytest.mark.unit
class TestCheckUuid:
    def test_owner(self, client):
        body = {"exists": True, "role": "main", "translation": {"id": 3, "file_hash": "h"}}
        with patch(REQUEST, return_value=_response(json_data=body)):
            check = client.check_uuid("u")
        assert check.is_owner
        assert check.translation_id == 3
        assert check.file_hash == "h"

    def test_other_users_copy(self, client):
        body = {"exists": True, "role": None, "main": {"id": 9, "file_hash": "m"}}
        with patch(REQUEST, return_value=_response(json_data=body)):
            check = client.check_uuid("u")
        assert check.exists
        assert not check.is_owner
        assert check.role == "none"
        assert check.translation_id == 9

    def test_unauthenticated(self, client):
        with patch(REQUEST, return_value=_response(401, {"error": "bad token"})):
            check = client.check_uuid("u")
        assert check.success is False
        assert check.error == "Not authenticated"


@pytest.mark.unit
class TestUpload:
    def test_payload_and_result(self, client):
        upload = UploadRequest(
            steam_id="123450",
            game_name="Hollow Deep",
            source_language="en",
            target_language="fr",
            content="{}",
        )
        body = {"translation": {"id": 42, "file_hash": "new", "line_count": 3}}
        with patch(REQUEST, return_value=_response(201, body)) as mock:
            result = client.upload(upload)
        assert mock.call_args[1]["method"] == "POST"
        assert mock.call_args[1]["json"]["game_name"] == "Hollow Deep"
        assert mock.call_args[1]["json"]["type"] == "ai"
        assert result.success
        assert (result.translation_id, result.file_hash, result.line_count) == (42, "new", 3)

    def test_failure(self, client):
        upload = UploadRequest(None, "Hollow Deep", "en", "fr", "{}")
        with patch(REQUEST, side_effect=requests.exceptions.ConnectionError):
            result = client.upload(upload)
        assert result.success is False
        assert result.translation_id is None
