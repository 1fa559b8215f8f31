"""Tests for the HTTP upload client."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from maturewatch.integrations.upload import MAX_RETRIES, UploadClient, _retry_on_disconnect

# ------------------------------------------------------------------
# _retry_on_disconnect
# ------------------------------------------------------------------


def test_retry_on_remote_protocol_error():
    """First call raises RemoteProtocolError, second succeeds."""
    mock_fn = MagicMock(side_effect=[httpx.RemoteProtocolError("peer closed"), "ok"])

    with patch("maturewatch.integrations.upload.time.sleep"):
        result = _retry_on_disconnect(mock_fn, "arg1", key="val")

    assert result == "ok"
    assert mock_fn.call_count == 2
    mock_fn.assert_called_with("arg1", key="val")


def test_retry_exhausted_raises():
    mock_fn = MagicMock(side_effect=[httpx.RemoteProtocolError("drop")] * (MAX_RETRIES + 1))

    with (
        patch("maturewatch.integrations.upload.time.sleep"),
        pytest.raises(httpx.RemoteProtocolError),
    ):
        _retry_on_disconnect(mock_fn)

    assert mock_fn.call_count == MAX_RETRIES + 1


# ------------------------------------------------------------------
# UploadClient
# ------------------------------------------------------------------


class TestUpload:
    def test_posts_multipart_file(self, tmp_path):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = request.read()
            return httpx.Response(201, text="receipt-123\n")

        f = tmp_path / "batch.csv"
        f.write_bytes(b"id,value\n1,2\n")

        with UploadClient(
            "https://ingest.example.com/files",
            token="s3cret",
            transport=httpx.MockTransport(handler),
        ) as client:
            receipt = client.upload(f)

        assert receipt == "receipt-123"
        assert seen["method"] == "POST"
        assert seen["url"] == "https://ingest.example.com/files"
        assert seen["auth"] == "Bearer s3cret"
        assert b'filename="batch.csv"' in seen["body"]
        assert b"id,value\n1,2\n" in seen["body"]

    def test_no_token_no_auth_header(self, tmp_path):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, text="ok")

        f = tmp_path / "a.txt"
        f.write_text("x")
        with UploadClient("https://ingest.example.com/", transport=httpx.MockTransport(handler)) as client:
            client.upload(f)

        assert seen["auth"] is None

    def test_error_status_raises(self, tmp_path):
        f = tmp_path / "a.txt"
        f.write_text("x")
        transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))

        with UploadClient("https://ingest.example.com/", transport=transport) as client:
            with pytest.raises(httpx.HTTPStatusError):
                client.upload(f)
