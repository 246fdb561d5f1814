from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BackendKind(str, Enum):
    AWS = "aws"
    AZURE = "azure"
    GOOGLE = "google"
    LOCAL = "local"


class CommandType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    READ = "read"
    DELETE = "delete"


class ScopedCredential(BaseModel):
    """Short-lived credential issued by the token endpoint for one operation."""

    model_config = ConfigDict(populate_by_name=True)

    backend_kind: str = Field(alias="bucketType")
    secret: str = Field(default="", alias="sas")
    expires_on: datetime | None = Field(default=None, alias="expiresOn")
    meta: dict[str, Any] = Field(default_factory=dict)

    @property
    def container_name(self) -> str | None:
        """Server-issued path scoping; wins over any caller path hint."""
        return self.meta.get("containerName") or None

    def hint(self, key: str, default: Any = None) -> Any:
        return self.meta.get(key, default)

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_on is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires_on = self.expires_on
        if expires_on.tzinfo is None:
            expires_on = expires_on.replace(tzinfo=timezone.utc)
        return expires_on <= now
