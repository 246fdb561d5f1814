from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from filesdk.errors import AuthorizationFailedError
from filesdk.models.credential import CommandType, ScopedCredential

logger = logging.getLogger(__name__)


def auth_headers(authorization: str | None) -> dict[str, str]:
    return {"authorization": authorization} if authorization else {}


class AuthorizationClient:
    """Exchanges the caller's authorization for a backend-scoped credential."""

    def __init__(self, api_url: str, http: httpx.Client) -> None:
        self.api_url = api_url.rstrip("/")
        self.http = http

    def get_credential(
        self,
        command: CommandType,
        bucket_type: str | None = None,
        file_path: str | None = None,
        authorization: str | None = None,
    ) -> ScopedCredential:
        params = {}
        if bucket_type:
            params["bucketType"] = bucket_type
        if file_path:
            params["filePath"] = file_path

        url = f"{self.api_url}/files/token/{command.value}"
        try:
            response = self.http.get(url, params=params, headers=auth_headers(authorization))
        except httpx.HTTPError as exc:
            logger.warning("Token request for %s failed: %s", command.value, exc)
            raise AuthorizationFailedError(f"Cannot get {command.value} credential: {exc}") from exc

        if response.status_code != 200:
            logger.warning("Token request for %s returned HTTP %d", command.value, response.status_code)
            raise AuthorizationFailedError(
                f"Cannot get {command.value} credential: HTTP {response.status_code}"
            )

        try:
            credential = ScopedCredential.model_validate(response.json())
        except (ValidationError, ValueError) as exc:
            raise AuthorizationFailedError(f"Malformed {command.value} credential: {exc}") from exc

        if credential.is_expired():
            raise AuthorizationFailedError(f"Received an already expired {command.value} credential")

        logger.debug("Got %s credential for backend %s", command.value, credential.backend_kind)
        return credential
