import io
import unittest
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError, EndpointConnectionError

from docvault.services.blob_store import LocalBlobStore
from docvault.services.blob_store.s3_store import S3BlobStore
from docvault.services.documents.errors import ObjectNotFound, StorageUnavailable
from docvault.tests._util_tempdir import cleanup_dir, make_temp_dir


def _client_error(code: str, op: str = "GetObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, op)


class TestLocalBlobStoreUnit(unittest.TestCase):
    def setUp(self):
        self._td = make_temp_dir(prefix="docvault_blobs")
        self.store = LocalBlobStore(self._td)
        self.store.ensure_bucket("documents")

    def tearDown(self):
        cleanup_dir(self._td)

    def test_put_get_remove(self):
        self.store.put("documents", "report/abc.pdf", b"%PDF", 4, "application/pdf")
        self.assertTrue((self._td / "documents" / "report" / "abc.pdf").is_file())
        self.assertEqual(self.store.get("documents", "report/abc.pdf"), b"%PDF")
        self.assertEqual(list((self._td / "documents" / "report").glob("*.part")), [])

        self.store.remove("documents", "report/abc.pdf")
        with self.assertRaises(ObjectNotFound):
            self.store.get("documents", "report/abc.pdf")
        with self.assertRaises(ObjectNotFound):
            self.store.remove("documents", "report/abc.pdf")

    def test_rejects_traversal_and_size_mismatch(self):
        with self.assertRaises(ObjectNotFound):
            self.store.get("documents", "../outside.txt")
        with self.assertRaises(StorageUnavailable):
            self.store.put("documents", "a.txt", b"abc", 10, "text/plain")
        with self.assertRaises(StorageUnavailable):
            self.store.ensure_bucket("../escape")


class TestS3BlobStoreUnit(unittest.TestCase):
    def test_client_built_from_endpoint_settings(self):
        with patch("docvault.services.blob_store.s3_store.boto3.client") as factory:
            S3BlobStore(endpoint_url="http://minio:9000", access_key="ak", secret_key="sk", region="us-east-1")
        factory.assert_called_once_with(
            "s3",
            endpoint_url="http://minio:9000",
            aws_access_key_id="ak",
            aws_secret_access_key="sk",
            region_name="us-east-1",
        )

    def test_ensure_bucket_creates_when_missing(self):
        client = MagicMock()
        client.head_bucket.side_effect = _client_error("404", "HeadBucket")
        S3BlobStore(client=client).ensure_bucket("documents")
        client.create_bucket.assert_called_once_with(Bucket="documents")

        existing = MagicMock()
        S3BlobStore(client=existing).ensure_bucket("documents")
        existing.create_bucket.assert_not_called()

    def test_put_and_get(self):
        client = MagicMock()
        client.get_object.return_value = {"Body": io.BytesIO(b"payload")}
        store = S3BlobStore(client=client)

        store.put("documents", "k/1.txt", b"payload", 7, "text/plain")
        client.put_object.assert_called_once_with(
            Bucket="documents", Key="k/1.txt", Body=b"payload", ContentLength=7, ContentType="text/plain"
        )
        self.assertEqual(store.get("documents", "k/1.txt"), b"payload")

    def test_error_mapping(self):
        client = MagicMock()
        client.get_object.side_effect = _client_error("NoSuchKey")
        client.put_object.side_effect = EndpointConnectionError(endpoint_url="http://minio:9000")
        client.head_object.side_effect = _client_error("404", "HeadObject")
        store = S3BlobStore(client=client)

        with self.assertRaises(ObjectNotFound):
            store.get("documents", "missing")
        with self.assertRaises(StorageUnavailable):
            store.put("documents", "k", b"x", 1, "text/plain")
        with self.assertRaises(ObjectNotFound):
            store.remove("documents", "missing")
        client.delete_object.assert_not_called()

        client.get_object.side_effect = _client_error("AccessDenied")
        with self.assertRaises(StorageUnavailable):
            store.get("documents", "k")

    def test_remove_existing_object(self):
        client = MagicMock()
        S3BlobStore(client=client).remove("documents", "k/1.txt")
        client.head_object.assert_called_once_with(Bucket="documents", Key="k/1.txt")
        client.delete_object.assert_called_once_with(Bucket="documents", Key="k/1.txt")


if __name__ == "__main__":
    unittest.main()
