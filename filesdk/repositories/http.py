from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from filesdk.clients.authorization import auth_headers
from filesdk.errors import MetadataError
from filesdk.models.file import FileRecord
from filesdk.repositories.base import FileRepository

logger = logging.getLogger(__name__)


def _ids_params(file_ids: list[str]) -> list[tuple[str, str]]:
    return [("_ids[]", file_id) for file_id in file_ids]


class HTTPFileRepository(FileRepository):
    """File records stored behind the files REST API."""

    def __init__(self, api_url: str, http: httpx.Client) -> None:
        self.api_url = api_url.rstrip("/")
        self.http = http

    def _request(
        self,
        method: str,
        path: str,
        authorization: str | None,
        allow_404: bool = False,
        **kwargs,
    ) -> httpx.Response | None:
        url = f"{self.api_url}{path}"
        try:
            response = self.http.request(method, url, headers=auth_headers(authorization), **kwargs)
        except httpx.HTTPError as exc:
            raise MetadataError(f"{method} {path} failed: {exc}") from exc

        if allow_404 and response.status_code == 404:
            return None
        if response.is_error:
            raise MetadataError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _parse(payload) -> FileRecord:
        try:
            return FileRecord.model_validate(payload)
        except ValidationError as exc:
            raise MetadataError(f"Malformed file record: {exc}") from exc

    def create(self, record: FileRecord, authorization: str | None = None) -> FileRecord:
        response = self._request("POST", "/files/plain", authorization, json=record.to_payload())
        created = self._parse(response.json())
        logger.info("File record created: id=%s, name=%s", created.id, created.name)
        return created

    def get_by_id(self, file_id: str, authorization: str | None = None) -> FileRecord | None:
        response = self._request("GET", f"/files/{file_id}", authorization, allow_404=True)
        if response is None or not response.content:
            logger.debug("get_by_id id=%s found=False", file_id)
            return None
        return self._parse(response.json())

    def get_by_ids(self, file_ids: list[str], authorization: str | None = None) -> list[FileRecord]:
        if not file_ids:
            return []
        response = self._request("GET", "/files", authorization, params=_ids_params(file_ids))
        docs = response.json().get("docs") or []
        logger.debug("get_by_ids requested=%d found=%d", len(file_ids), len(docs))
        return [self._parse(doc) for doc in docs]

    def archive(self, file_id: str, authorization: str | None = None) -> None:
        self._request("PUT", f"/files/{file_id}/archive", authorization)
        logger.info("File %s archived", file_id)

    def archive_many(self, file_ids: list[str], authorization: str | None = None) -> None:
        if not file_ids:
            return
        self._request("PUT", "/files/batch", authorization, params=_ids_params(file_ids))
        logger.info("Archived %d files", len(file_ids))

    def delete(self, file_id: str, authorization: str | None = None) -> None:
        self._request("DELETE", f"/files/{file_id}", authorization)
        logger.info("File record %s deleted", file_id)

    def delete_many(self, file_ids: list[str], authorization: str | None = None) -> None:
        if not file_ids:
            return
        self._request("DELETE", "/files", authorization, params=_ids_params(file_ids))
        logger.info("Deleted %d file records", len(file_ids))
