import pytest
from botocore.stub import Stubber

from boardguru.core.exceptions import StorageException
from boardguru.core.storage import InMemoryStorageClient, S3StorageClient

KEY = "org-1/user-1/asset-1/board_pack.pdf"


@pytest.fixture
def s3():
    return S3StorageClient(bucket="board-docs", region="us-east-1",
                           access_key_id="AKIDEXAMPLE", secret_access_key="secret")


def test_in_memory_round_trip():
    storage = InMemoryStorageClient()
    storage.upload_bytes(KEY, b"%PDF", "application/pdf")

    url = storage.presign_get(KEY, expires_in=60, download_name="Board Pack.pdf")

    assert KEY in url and "expires=60" in url
    storage.delete(KEY)
    with pytest.raises(StorageException):
        storage.presign_get(KEY)


def test_s3_presigned_url_forces_download(s3):
    url = s3.presign_get(KEY, expires_in=300, download_name="Board Pack.pdf")

    assert "board-docs" in url
    assert KEY in url
    assert "response-content-disposition=attachment" in url
    assert "X-Amz-Expires=300" in url


def test_s3_upload_sends_content_type(s3):
    with Stubber(s3._client) as stub:
        stub.add_response("put_object", {}, {
            "Bucket": "board-docs", "Key": KEY, "Body": b"%PDF", "ContentType": "application/pdf",
        })
        s3.upload_bytes(KEY, b"%PDF", "application/pdf")
        stub.assert_no_pending_responses()


def test_s3_errors_become_storage_exceptions(s3):
    with Stubber(s3._client) as stub:
        stub.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)
        stub.add_client_error("delete_object", service_error_code="NoSuchBucket", http_status_code=404)

        with pytest.raises(StorageException, match="Failed to upload"):
            s3.upload_bytes(KEY, b"%PDF", "application/pdf")
        with pytest.raises(StorageException, match="Failed to delete"):
            s3.delete(KEY)
