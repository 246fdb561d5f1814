"""Upload/delete orchestration over pluggable storage backends.

An upload asks the token endpoint for a scoped credential, picks the backend
adapter the credential names, resolves a free object name, expands the bytes
into quality variants, uploads every variant and finally persists one file
record describing them all. Objects are written before the record, so a
failure in between can leave orphaned objects but never a record pointing at
missing ones.
"""

from __future__ import annotations

import logging
import mimetypes
import threading
from concurrent import futures
from pathlib import Path

import httpx
from pydantic import ValidationError

from filesdk.clients.authorization import AuthorizationClient
from filesdk.compression import CompressedImage, ImageCompressor
from filesdk.errors import (
    BackendFailureError,
    BatchDeleteError,
    FileSDKError,
    InvalidArgumentError,
    NotFoundError,
    OperationCancelledError,
)
from filesdk.models.credential import CommandType, ScopedCredential
from filesdk.models.file import FileRecord, FileVariant, UploadOptions, UploadRequest
from filesdk.naming import NameResolver, split_name, variant_object_name
from filesdk.repositories.base import FileRepository
from filesdk.settings import Settings
from filesdk.storage.base import StorageBackend
from filesdk.storage.registry import BackendRegistry, build_registry, get_storage

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


class FileService:
    def __init__(
        self,
        settings: Settings,
        authorizer: AuthorizationClient,
        repo: FileRepository,
        compressor: ImageCompressor | None = None,
        registry: BackendRegistry | None = None,
        resolver: NameResolver | None = None,
    ) -> None:
        if not settings.file_api_url:
            raise InvalidArgumentError("no file api url given")
        self.settings = settings
        self.authorizer = authorizer
        self.repo = repo
        self.compressor = compressor or ImageCompressor(max_workers=settings.max_workers)
        self.registry = build_registry() if registry is None else registry
        self.resolver = resolver or NameResolver(max_attempts=settings.name_max_attempts)

    @classmethod
    def from_settings(cls, settings: Settings, http: httpx.Client | None = None) -> FileService:
        from filesdk.repositories.factory import get_authorization_client, get_file_repository, get_http_client

        http = http or get_http_client(settings)
        return cls(
            settings,
            get_authorization_client(settings, http),
            get_file_repository(settings, http),
        )

    def _authorization(self, override: str | None) -> str | None:
        return override or self.settings.header_authorization or None

    def _backend(self, credential: ScopedCredential) -> StorageBackend:
        return get_storage(credential, self.registry)

    # -- reads ---------------------------------------------------------------

    def get_file(self, file_id: str, authorization: str | None = None) -> FileRecord | None:
        return self.repo.get_by_id(file_id, self._authorization(authorization))

    def get_files(self, file_ids: list[str], authorization: str | None = None) -> list[FileRecord]:
        return self.repo.get_by_ids(file_ids, self._authorization(authorization))

    # -- uploads -------------------------------------------------------------

    def upload_from_bytes(
        self,
        data: bytes,
        size: int | None = None,
        options: UploadOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> FileRecord:
        try:
            request = UploadRequest(
                data=data,
                size=len(data) if size is None else size,
                options=options or UploadOptions(),
            )
        except ValidationError as exc:
            raise InvalidArgumentError(str(exc)) from exc
        return self.upload(request, cancel_event)

    def upload_from_local_path(
        self,
        path: str | Path,
        options: UploadOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> FileRecord:
        """Upload a local file, defaulting the object name and MIME type from its path.

        Values set explicitly on ``options`` win over the path-derived ones.
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError(f"No such file: {path}") from exc

        mime_type, _ = mimetypes.guess_type(path.name)
        defaults = {"blob_name": path.name, "mime_type": mime_type}
        explicit = options.model_dump(exclude_unset=True) if options else {}
        merged = UploadOptions(**{**defaults, **explicit})
        return self.upload_from_bytes(data, path.stat().st_size, merged, cancel_event)

    def upload(self, request: UploadRequest, cancel_event: threading.Event | None = None) -> FileRecord:
        opts = request.options
        authorization = self._authorization(opts.header_authorization)
        path_hint = opts.bucket_file_path or self.settings.bucket_file_path or None

        command = CommandType.UPDATE if opts.is_update else CommandType.CREATE
        credential = self.authorizer.get_credential(
            command,
            bucket_type=opts.bucket_type or self.settings.bucket_type or None,
            file_path=path_hint,
            authorization=authorization,
        )
        backend = self._backend(credential)

        base_path = credential.container_name or path_hint
        if not base_path:
            raise InvalidArgumentError("No bucket file path given and none issued with the credential")

        name = self.resolver.resolve(
            opts.blob_name,
            opts.is_update,
            lambda candidate: backend.exists(base_path, candidate),
            prefix=base_path.rstrip("/").rsplit("/", 1)[-1],
        )

        compression = self.compressor.expand(request.data, request.distinct_qualities)
        mime_type = compression.mime_type or opts.mime_type or DEFAULT_MIME_TYPE

        variants = self._put_variants(backend, base_path, name, compression.images, mime_type, cancel_event)

        record = FileRecord(
            name=name,
            bucket_type=credential.backend_kind,
            bucket_file_path=base_path,
            bucket_file_name=name,
            original_file_name=opts.blob_name or name,
            extension=split_name(name)[1],
            size=request.size,
            compressions=variants,
            mime_type=mime_type,
            is_archived=opts.is_archived,
            created_by=opts.created_by,
            tags=opts.tags,
            organization=opts.organization,
        )
        created = self.repo.create(record, authorization)
        logger.info(
            "Uploaded %s to %s/%s with %d variant(s)",
            name,
            credential.backend_kind,
            base_path,
            len(variants),
        )
        return created

    def _put_variants(
        self,
        backend: StorageBackend,
        base_path: str,
        name: str,
        images: list[CompressedImage],
        mime_type: str,
        cancel_event: threading.Event | None,
    ) -> list[FileVariant]:
        def put(image: CompressedImage) -> FileVariant:
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelledError("Upload cancelled")
            object_name = variant_object_name(name, image.quality)
            url = backend.put(base_path, object_name, image.data, len(image.data), mime_type)
            return FileVariant(
                quality=image.quality,
                url=url.split("?")[0],
                bucket_file_path=base_path,
                bucket_file_name=object_name,
            )

        written: list[FileVariant] = []
        error: BaseException | None = None
        with futures.ThreadPoolExecutor(max_workers=self.settings.max_workers) as executor:
            pending = [executor.submit(put, image) for image in images]
            for future in pending:
                try:
                    written.append(future.result())
                except Exception as exc:
                    if error is None:
                        error = exc
                        for other in pending:
                            other.cancel()

        if error is None:
            return written

        if self.settings.cleanup_on_failure and written:
            self._cleanup(backend, written)

        if isinstance(error, (BackendFailureError, OperationCancelledError)):
            raise error
        if isinstance(error, futures.CancelledError):
            raise OperationCancelledError("Upload cancelled") from error
        raise BackendFailureError(f"Upload of {name} failed: {error}") from error

    def _cleanup(self, backend: StorageBackend, written: list[FileVariant]) -> None:
        """Best effort: failures here are logged and otherwise ignored."""
        for variant in written:
            try:
                backend.delete_if_exists(variant.bucket_file_path, variant.bucket_file_name)
            except BackendFailureError:
                logger.exception("Cleanup of %s failed, object left behind", variant.bucket_file_name)

    # -- deletes -------------------------------------------------------------

    def _delete_variants(self, backend: StorageBackend, credential: ScopedCredential, record: FileRecord) -> None:
        failed: list[str] = []
        for variant in record.compressions:
            path = credential.container_name or variant.bucket_file_path
            try:
                backend.delete_if_exists(path, variant.bucket_file_name)
            except BackendFailureError as exc:
                logger.warning("Delete of %s/%s failed: %s", path, variant.bucket_file_name, exc)
                failed.append(variant.bucket_file_name)
        if failed:
            raise BackendFailureError(
                f"Could not delete {len(failed)} variant(s) of {record.id}: {', '.join(failed)}",
                failed,
            )

    def delete_one(self, file_id: str, soft: bool = False, authorization: str | None = None) -> None:
        authorization = self._authorization(authorization)
        if soft:
            self.repo.archive(file_id, authorization)
            return

        record = self.repo.get_by_id(file_id, authorization)
        if record is None:
            raise NotFoundError(f"File not found: {file_id}")

        credential = self.authorizer.get_credential(
            CommandType.DELETE, bucket_type=record.bucket_type, authorization=authorization
        )
        backend = self._backend(credential)
        self._delete_variants(backend, credential, record)
        self.repo.delete(file_id, authorization)
        logger.info("File %s deleted with %d variant(s)", file_id, len(record.compressions))

    def delete_many(self, file_ids: list[str], soft: bool = False, authorization: str | None = None) -> None:
        authorization = self._authorization(authorization)
        file_ids = list(dict.fromkeys(file_ids))
        if not file_ids:
            return
        if soft:
            self.repo.archive_many(file_ids, authorization)
            return

        records = {record.id: record for record in self.repo.get_by_ids(file_ids, authorization)}
        failures: dict[str, FileSDKError] = {
            file_id: NotFoundError(f"File not found: {file_id}") for file_id in file_ids if file_id not in records
        }

        removed: list[str] = []
        if records:
            credential = self.authorizer.get_credential(CommandType.DELETE, authorization=authorization)
            backend = self._backend(credential)
            for file_id in file_ids:
                record = records.get(file_id)
                if record is None:
                    continue
                try:
                    self._delete_variants(backend, credential, record)
                except BackendFailureError as exc:
                    failures[file_id] = exc
                    continue
                removed.append(file_id)

        if removed:
            self.repo.delete_many(removed, authorization)
            logger.info("Deleted %d of %d files", len(removed), len(file_ids))

        if failures:
            raise BatchDeleteError(failures, removed)
