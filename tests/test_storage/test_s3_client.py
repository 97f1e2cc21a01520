# tests/test_storage/test_s3_client.py

from urllib.parse import parse_qs, urlparse

import boto3
import pytest
from botocore.config import Config
from botocore.stub import Stubber

from app.utils.aws import S3Client, S3StorageError, _normalize_key
from tests.test_settings import build_test_settings

BUCKET = "vidshare-test"
ENDPOINT = "https://s3.us-west-002.backblazeb2.com"
KEY = "1760875200000-0a1b2c3d-clip.mp4"


@pytest.fixture()
def stubbed():
    client = boto3.client(
        "s3",
        region_name="us-west-002",
        endpoint_url=ENDPOINT,
        aws_access_key_id="AKIATEST",
        aws_secret_access_key="secret-test",
        config=Config(signature_version="s3v4"),
    )
    with Stubber(client) as stubber:
        yield S3Client(BUCKET, region_name="us-west-002", client=client), stubber
        stubber.assert_no_pending_responses()


def test_put_bytes_sends_type_and_metadata(stubbed):
    storage, stubber = stubbed
    stubber.add_response(
        "put_object",
        {},
        {
            "Bucket": BUCKET,
            "Key": KEY,
            "Body": b"payload",
            "ContentType": "video/mp4",
            "Metadata": {"original-name": "clip.mp4", "user-id": "7", "expires-at": "2026-10-24T12:00:00+00:00"},
        },
    )

    storage.put_bytes(
        KEY,
        b"payload",
        content_type="video/mp4",
        metadata={"original-name": "clip.mp4", "user-id": 7, "expires-at": "2026-10-24T12:00:00+00:00"},
    )


def test_put_bytes_failure_raises_storage_error(stubbed):
    storage, stubber = stubbed
    stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)

    with pytest.raises(S3StorageError):
        storage.put_bytes(KEY, b"payload", content_type="video/mp4")


def test_delete_success(stubbed):
    storage, stubber = stubbed
    stubber.add_response("delete_object", {}, {"Bucket": BUCKET, "Key": KEY})

    assert storage.delete(KEY) is True


def test_delete_missing_object_counts_as_success(stubbed):
    storage, stubber = stubbed
    stubber.add_client_error("delete_object", service_error_code="NoSuchKey", http_status_code=404)

    assert storage.delete(KEY) is True


def test_delete_other_error_returns_false(stubbed):
    storage, stubber = stubbed
    stubber.add_client_error("delete_object", service_error_code="AccessDenied", http_status_code=403)

    assert storage.delete(KEY) is False


def test_head_missing_is_none(stubbed):
    storage, stubber = stubbed
    stubber.add_client_error("head_object", service_error_code="404", http_status_code=404)

    assert storage.head(KEY) is None


def test_head_returns_metadata(stubbed):
    storage, stubber = stubbed
    stubber.add_response(
        "head_object",
        {"ContentLength": 7, "ContentType": "video/mp4", "Metadata": {"user-id": "7"}},
        {"Bucket": BUCKET, "Key": KEY},
    )

    head = storage.head(KEY)

    assert head["ContentLength"] == 7
    assert head["Metadata"] == {"user-id": "7"}


def test_presigned_get_is_sigv4_with_ttl(stubbed):
    storage, _ = stubbed

    url = storage.presigned_get(KEY, expires_in=3600)

    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    assert parsed.path.endswith(KEY)
    assert query["X-Amz-Expires"] == ["3600"]
    assert query["X-Amz-Algorithm"] == ["AWS4-HMAC-SHA256"]
    assert "X-Amz-Signature" in query


@pytest.mark.parametrize("key", ["", "   ", "../etc/passwd", "a/../b", "bad\nkey"])
def test_unsafe_keys_are_rejected(key):
    with pytest.raises(S3StorageError):
        _normalize_key(key)


def test_leading_slash_is_stripped():
    assert _normalize_key("/videos//clip.mp4") == "videos/clip.mp4"


def test_missing_bucket_is_rejected():
    with pytest.raises(S3StorageError):
        S3Client(None)


def test_from_settings_uses_aws_settings():
    settings = build_test_settings(AWS_BUCKET_NAME="from-settings", AWS_REGION="eu-central-003")

    storage = S3Client.from_settings(settings)

    assert storage.bucket == "from-settings"
    assert storage.region == "eu-central-003"
