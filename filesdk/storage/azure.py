from __future__ import annotations

import logging

from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings, PublicAccess

from filesdk.errors import BackendFailureError, InvalidArgumentError
from filesdk.models.credential import ScopedCredential
from filesdk.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class AzureBlobStorage(StorageBackend):
    """Azure Blob Storage backend; the object path is the container name.

    Credential layout: ``sas`` holds the shared access signature, ``meta``
    holds ``accountName`` and optionally ``accountUrl`` for non-public
    clouds or emulators.
    """

    def __init__(self, credential: ScopedCredential) -> None:
        super().__init__(credential)
        account_name = credential.hint("accountName")
        account_url = credential.hint("accountUrl")
        if not account_name and not account_url:
            raise InvalidArgumentError("Azure credential is missing meta.accountName")

        self.account_url = (account_url or f"https://{account_name}.blob.core.windows.net").rstrip("/")
        self.client = BlobServiceClient(account_url=self.account_url, credential=credential.secret or None)

    def ensure_namespace(self, object_path: str) -> None:
        container = self.client.get_container_client(object_path)
        try:
            if container.exists():
                return
            container.create_container(public_access=PublicAccess.BLOB)
            logger.info("Created container %s", object_path)
        except ResourceExistsError:
            logger.debug("Container %s created concurrently", object_path)
        except AzureError as exc:
            raise BackendFailureError(f"Cannot prepare container {object_path}: {exc}") from exc

    def put(self, object_path: str, object_name: str, data: bytes, size: int, mime_type: str) -> str:
        self.ensure_namespace(object_path)
        blob = self.client.get_blob_client(container=object_path, blob=object_name)
        try:
            blob.upload_blob(
                data,
                length=size,
                overwrite=True,
                content_settings=ContentSettings(content_type=mime_type),
            )
        except AzureError as exc:
            raise BackendFailureError(f"Upload of {object_name} failed: {exc}", [object_name]) from exc
        logger.info("Uploaded azure://%s/%s (%d bytes)", object_path, object_name, size)
        # The client URL carries the SAS token when one was used.
        return blob.url.split("?")[0]

    def delete_if_exists(self, object_path: str, object_name: str) -> None:
        blob = self.client.get_blob_client(container=object_path, blob=object_name)
        try:
            blob.delete_blob()
        except ResourceNotFoundError:
            logger.debug("azure://%s/%s already absent", object_path, object_name)
            return
        except AzureError as exc:
            raise BackendFailureError(f"Delete of {object_name} failed: {exc}", [object_name]) from exc
        logger.info("Deleted azure://%s/%s", object_path, object_name)

    def exists(self, object_path: str, object_name: str) -> bool:
        blob = self.client.get_blob_client(container=object_path, blob=object_name)
        try:
            return blob.exists()
        except AzureError as exc:
            raise BackendFailureError(f"Cannot probe {object_name}: {exc}") from exc
