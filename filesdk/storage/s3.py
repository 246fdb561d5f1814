from __future__ import annotations

import logging
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from filesdk.errors import BackendFailureError, InvalidArgumentError
from filesdk.models.credential import ScopedCredential
from filesdk.storage.base import StorageBackend

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}
_DEFAULT_REGION = "us-east-1"


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3Storage(StorageBackend):
    """S3 (or S3-compatible) backend; the object path is the bucket name.

    Credential layout: ``sas`` holds the secret access key, ``meta`` holds
    ``accessKeyId``, ``region`` and optionally ``sessionToken``,
    ``endpointUrl`` and ``publicUrl``.
    """

    def __init__(self, credential: ScopedCredential) -> None:
        super().__init__(credential)
        access_key_id = credential.hint("accessKeyId")
        if not access_key_id:
            raise InvalidArgumentError("S3 credential is missing meta.accessKeyId")

        self.region = credential.hint("region") or _DEFAULT_REGION
        self.endpoint_url = (credential.hint("endpointUrl") or "").rstrip("/")
        self.public_url = (credential.hint("publicUrl") or "").rstrip("/")

        client_kwargs: dict = {
            "service_name": "s3",
            "region_name": self.region,
            "aws_access_key_id": access_key_id,
            "aws_secret_access_key": credential.secret,
        }
        if credential.hint("sessionToken"):
            client_kwargs["aws_session_token"] = credential.hint("sessionToken")
        if self.endpoint_url:
            client_kwargs["endpoint_url"] = self.endpoint_url

        self.client = boto3.client(**client_kwargs)

    def object_url(self, bucket: str, key: str) -> str:
        if self.public_url:
            return f"{self.public_url}/{quote(key)}"
        if self.endpoint_url:
            return f"{self.endpoint_url}/{bucket}/{quote(key)}"
        return f"https://{bucket}.s3.{self.region}.amazonaws.com/{quote(key)}"

    def ensure_namespace(self, object_path: str) -> None:
        try:
            self.client.head_bucket(Bucket=object_path)
            return
        except ClientError as exc:
            if _error_code(exc) not in _MISSING_CODES:
                raise BackendFailureError(f"Cannot access bucket {object_path}: {exc}") from exc
        except BotoCoreError as exc:
            raise BackendFailureError(f"Cannot access bucket {object_path}: {exc}") from exc

        create_kwargs: dict = {"Bucket": object_path}
        if self.region != _DEFAULT_REGION:
            create_kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            self.client.create_bucket(**create_kwargs)
            logger.info("Created bucket %s in %s", object_path, self.region)
        except ClientError as exc:
            if _error_code(exc) not in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                raise BackendFailureError(f"Cannot create bucket {object_path}: {exc}") from exc
        except BotoCoreError as exc:
            raise BackendFailureError(f"Cannot create bucket {object_path}: {exc}") from exc

    def put(self, object_path: str, object_name: str, data: bytes, size: int, mime_type: str) -> str:
        self.ensure_namespace(object_path)
        try:
            self.client.put_object(
                Bucket=object_path,
                Key=object_name,
                Body=data,
                ContentType=mime_type,
            )
        except (ClientError, BotoCoreError) as exc:
            raise BackendFailureError(f"Upload of {object_name} failed: {exc}", [object_name]) from exc
        logger.info("Uploaded s3://%s/%s (%d bytes)", object_path, object_name, size)
        return self.object_url(object_path, object_name)

    def delete_if_exists(self, object_path: str, object_name: str) -> None:
        try:
            self.client.delete_object(Bucket=object_path, Key=object_name)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                logger.debug("s3://%s/%s already absent", object_path, object_name)
                return
            raise BackendFailureError(f"Delete of {object_name} failed: {exc}", [object_name]) from exc
        except BotoCoreError as exc:
            raise BackendFailureError(f"Delete of {object_name} failed: {exc}", [object_name]) from exc
        logger.info("Deleted s3://%s/%s", object_path, object_name)

    def exists(self, object_path: str, object_name: str) -> bool:
        try:
            self.client.head_object(Bucket=object_path, Key=object_name)
            return True
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                return False
            raise BackendFailureError(f"Cannot probe {object_name}: {exc}") from exc
        except BotoCoreError as exc:
            raise BackendFailureError(f"Cannot probe {object_name}: {exc}") from exc
