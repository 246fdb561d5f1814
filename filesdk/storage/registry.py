import logging

from filesdk.errors import UnsupportedBackendError
from filesdk.models.credential import BackendKind, ScopedCredential
from filesdk.storage.base import StorageBackend

logger = logging.getLogger(__name__)

BackendRegistry = dict[BackendKind, type[StorageBackend]]


def build_registry() -> BackendRegistry:
    """Adapters available in this installation, keyed by backend kind."""
    from filesdk.storage.azure import AzureBlobStorage
    from filesdk.storage.local import LocalStorage
    from filesdk.storage.s3 import S3Storage

    return {
        BackendKind.AWS: S3Storage,
        BackendKind.AZURE: AzureBlobStorage,
        BackendKind.LOCAL: LocalStorage,
    }


def resolve_backend_kind(value: str) -> BackendKind:
    try:
        return BackendKind(value)
    except ValueError:
        raise UnsupportedBackendError(f"Unsupported storage backend: {value}") from None


def get_storage(credential: ScopedCredential, registry: BackendRegistry | None = None) -> StorageBackend:
    registry = build_registry() if registry is None else registry
    kind = resolve_backend_kind(credential.backend_kind)

    backend_cls = registry.get(kind)
    if backend_cls is None:
        raise UnsupportedBackendError(f"Unsupported storage backend: {kind.value}")

    logger.info("Using storage backend: %s", kind.value)
    return backend_cls(credential)
