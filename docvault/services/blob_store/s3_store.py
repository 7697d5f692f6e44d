"""S3-compatible blob store (AWS S3 or MinIO via `endpoint_url`)."""
from __future__ import annotations

import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from docvault.services.blob_store.base import BlobStore
from docvault.services.documents.errors import ObjectNotFound, StorageUnavailable

logger = logging.getLogger(__name__)

_MISSING_CODES = {"NoSuchKey", "NoSuchBucket", "404", "NotFound"}


def _error_code(e: ClientError) -> str:
    return str(e.response.get("Error", {}).get("Code", ""))


class S3BlobStore(BlobStore):
    def __init__(
        self,
        *,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str | None = None,
        client=None,
    ):
        self._client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
        )

    def ensure_bucket(self, bucket: str) -> None:
        try:
            self._client.head_bucket(Bucket=bucket)
            logger.info('S3 bucket "%s" exists', bucket)
            return
        except ClientError as e:
            if _error_code(e) not in _MISSING_CODES:
                raise StorageUnavailable(f"bucket check failed for {bucket}: {e}") from e
        except BotoCoreError as e:
            raise StorageUnavailable(f"bucket check failed for {bucket}: {e}") from e

        try:
            self._client.create_bucket(Bucket=bucket)
        except (ClientError, BotoCoreError) as e:
            raise StorageUnavailable(f"bucket creation failed for {bucket}: {e}") from e
        logger.info('S3 bucket "%s" created', bucket)

    def put(self, bucket: str, key: str, data: bytes, size: int, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=bucket,
                Key=key,
                Body=data,
                ContentLength=size,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageUnavailable(f"failed to write {bucket}/{key}: {e}") from e

    def get(self, bucket: str, key: str) -> bytes:
        try:
            resp = self._client.get_object(Bucket=bucket, Key=key)
            body = resp["Body"]
            try:
                return body.read()
            finally:
                body.close()
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                raise ObjectNotFound(f"object not found: {bucket}/{key}") from e
            raise StorageUnavailable(f"failed to read {bucket}/{key}: {e}") from e
        except BotoCoreError as e:
            raise StorageUnavailable(f"failed to read {bucket}/{key}: {e}") from e

    def remove(self, bucket: str, key: str) -> None:
        # S3 DeleteObject succeeds for absent keys, so check with a HEAD first to report ObjectNotFound.
        try:
            self._client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                raise ObjectNotFound(f"object not found: {bucket}/{key}") from e
            raise StorageUnavailable(f"failed to stat {bucket}/{key}: {e}") from e
        except BotoCoreError as e:
            raise StorageUnavailable(f"failed to stat {bucket}/{key}: {e}") from e

        try:
            self._client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageUnavailable(f"failed to remove {bucket}/{key}: {e}") from e
