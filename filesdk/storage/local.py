import logging
from pathlib import Path
from urllib.parse import quote

from filesdk.errors import BackendFailureError, InvalidArgumentError
from filesdk.models.credential import ScopedCredential
from filesdk.storage.base import StorageBackend

logger = logging.getLogger(__name__)


def _check_segment(value: str, what: str) -> str:
    if not value or value in (".", "..") or "/" in value or "\\" in value:
        raise InvalidArgumentError(f"Invalid {what}: {value!r}")
    return value


class LocalStorage(StorageBackend):
    """Filesystem backend: one directory per object path under ``meta.baseDir``."""

    def __init__(self, credential: ScopedCredential) -> None:
        super().__init__(credential)
        base_dir = credential.hint("baseDir")
        if not base_dir:
            raise InvalidArgumentError("Local storage credential is missing meta.baseDir")
        self.base_dir = Path(base_dir)
        self.base_url = (credential.hint("baseUrl") or "").rstrip("/")

    def _path(self, object_path: str, object_name: str | None = None) -> Path:
        segments = [_check_segment(part, "object path") for part in object_path.strip("/").split("/")]
        directory = self.base_dir.joinpath(*segments)
        if object_name is None:
            return directory
        return directory / _check_segment(object_name, "object name")

    def _url(self, object_path: str, object_name: str) -> str:
        if self.base_url:
            return f"{self.base_url}/{quote(object_path)}/{quote(object_name)}"
        return self._path(object_path, object_name).resolve().as_uri()

    def ensure_namespace(self, object_path: str) -> None:
        try:
            self._path(object_path).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BackendFailureError(f"Cannot create directory for {object_path}: {exc}") from exc

    def put(self, object_path: str, object_name: str, data: bytes, size: int, mime_type: str) -> str:
        self.ensure_namespace(object_path)
        path = self._path(object_path, object_name)
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise BackendFailureError(f"Cannot write {path}: {exc}", [object_name]) from exc
        logger.debug("Saved %s (%d bytes, %s) to %s", object_name, size, mime_type, path)
        return self._url(object_path, object_name)

    def delete_if_exists(self, object_path: str, object_name: str) -> None:
        path = self._path(object_path, object_name)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise BackendFailureError(f"Cannot delete {path}: {exc}", [object_name]) from exc
        logger.debug("Deleted %s", path)

    def exists(self, object_path: str, object_name: str) -> bool:
        return self._path(object_path, object_name).is_file()
