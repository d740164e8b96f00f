"""Tests for the R2 storage client. All boto3 calls are mocked."""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from markcraft.config import settings
from markcraft.utils import r2


@pytest.fixture(autouse=True)
def _reset_r2_client():
    r2.reset_client()
    yield
    r2.reset_client()


@pytest.fixture()
def mock_s3():
    with patch.object(r2, "_build_client") as mock_build:
        mock_client = MagicMock()
        mock_build.return_value = mock_client
        yield mock_client


class TestUploadObject:
    def test_upload_calls_put_object(self, mock_s3):
        key = "logos/brightpath/wordmark/abc.png"

        result = r2.upload_object(key, b"png-bytes")

        mock_s3.put_object.assert_called_once_with(
            Bucket=settings.r2_bucket_name,
            Key=key,
            Body=b"png-bytes",
            ContentType="image/png",
        )
        assert result == key

    def test_client_is_built_once(self, mock_s3):
        with patch.object(r2, "_build_client", wraps=r2._build_client) as build:
            r2.upload_object("a.png", b"1")
            r2.upload_object("b.png", b"2")

        assert build.call_count == 1


class TestGeneratePresignedUrl:
    def test_generates_url(self, mock_s3):
        mock_s3.generate_presigned_url.return_value = "https://r2.example.com/signed"

        url = r2.generate_presigned_url("logos/x.png")

        assert url == "https://r2.example.com/signed"
        mock_s3.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={"Bucket": settings.r2_bucket_name, "Key": "logos/x.png"},
            ExpiresIn=settings.presigned_url_expiry_seconds,
        )

    def test_client_error_propagates(self, mock_s3):
        mock_s3.generate_presigned_url.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "nope"}}, "GetObject"
        )

        with pytest.raises(ClientError):
            r2.generate_presigned_url("logos/x.png")
