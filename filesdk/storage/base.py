from abc import ABC, abstractmethod

from filesdk.models.credential import ScopedCredential


class StorageBackend(ABC):
    """Provider adapter bound to the credential of a single operation."""

    def __init__(self, credential: ScopedCredential) -> None:
        self.credential = credential

    @abstractmethod
    def ensure_namespace(self, object_path: str) -> None:
        """Create the container/bucket/directory if it does not exist yet."""
        ...

    @abstractmethod
    def put(self, object_path: str, object_name: str, data: bytes, size: int, mime_type: str) -> str:
        """Upload the object, creating its namespace if needed, and return its public URL."""
        ...

    @abstractmethod
    def delete_if_exists(self, object_path: str, object_name: str) -> None:
        """Delete the object. A missing object is not an error."""
        ...

    @abstractmethod
    def exists(self, object_path: str, object_name: str) -> bool: ...
