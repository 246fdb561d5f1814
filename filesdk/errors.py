from __future__ import annotations


class FileSDKError(Exception):
    """Base class for every error raised by filesdk."""


class InvalidArgumentError(FileSDKError, ValueError):
    pass


class AuthorizationFailedError(FileSDKError):
    pass


class UnsupportedBackendError(FileSDKError):
    pass


class NotFoundError(FileSDKError, LookupError):
    pass


class BackendFailureError(FileSDKError):
    def __init__(self, message: str, failed_objects: list[str] | None = None) -> None:
        super().__init__(message)
        self.failed_objects = failed_objects or []


class NameCollisionError(BackendFailureError):
    pass


class MetadataError(FileSDKError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class OperationCancelledError(FileSDKError):
    pass


class BatchDeleteError(FileSDKError):
    """Raised by batch hard deletes when at least one id could not be removed."""

    def __init__(self, failures: dict[str, FileSDKError], deleted: list[str]) -> None:
        ids = ", ".join(sorted(failures))
        super().__init__(f"Failed to delete {len(failures)} file(s): {ids}")
        self.failures = failures
        self.deleted = deleted
