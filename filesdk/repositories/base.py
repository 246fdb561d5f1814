from abc import ABC, abstractmethod

from filesdk.models.file import FileRecord


class FileRepository(ABC):
    """Metadata store for file records.

    Every method accepts the authorization header to forward; ``None`` sends
    the request unauthenticated.
    """

    @abstractmethod
    def create(self, record: FileRecord, authorization: str | None = None) -> FileRecord: ...

    @abstractmethod
    def get_by_id(self, file_id: str, authorization: str | None = None) -> FileRecord | None: ...

    @abstractmethod
    def get_by_ids(self, file_ids: list[str], authorization: str | None = None) -> list[FileRecord]: ...

    @abstractmethod
    def archive(self, file_id: str, authorization: str | None = None) -> None: ...

    @abstractmethod
    def archive_many(self, file_ids: list[str], authorization: str | None = None) -> None: ...

    @abstractmethod
    def delete(self, file_id: str, authorization: str | None = None) -> None: ...

    @abstractmethod
    def delete_many(self, file_ids: list[str], authorization: str | None = None) -> None: ...
