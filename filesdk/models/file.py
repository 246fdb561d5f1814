from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

ORIGINAL_QUALITY = 1.0


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileVariant(_CamelModel):
    quality: float
    url: str = ""
    bucket_file_path: str
    bucket_file_name: str


class FileRecord(_CamelModel):
    id: str | None = Field(default=None, alias="_id")
    name: str
    bucket_type: str
    bucket_file_path: str
    bucket_file_name: str
    original_file_name: str
    extension: str = ""
    size: int = 0
    url: str = ""
    thumbnail_url: str = ""
    compressions: list[FileVariant]
    mime_type: str = ""
    is_archived: bool = False
    created_by: str | None = None
    tags: list[str] = []
    organization: str | None = None

    @model_validator(mode="after")
    def _check_variants(self) -> FileRecord:
        if not self.compressions:
            raise ValueError("A file record needs at least one variant")
        originals = [v for v in self.compressions if v.quality == ORIGINAL_QUALITY]
        if len(originals) != 1:
            raise ValueError("A file record needs exactly one original (quality 1) variant")
        # Derived from the variants when not given explicitly.
        if not self.url:
            self.url = self.original.url
        if not self.thumbnail_url:
            self.thumbnail_url = self.thumbnail.url
        return self

    @property
    def original(self) -> FileVariant:
        return next(v for v in self.compressions if v.quality == ORIGINAL_QUALITY)

    @property
    def thumbnail(self) -> FileVariant:
        return min(self.compressions, key=lambda v: v.quality)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class UploadOptions(BaseModel):
    blob_name: str | None = None
    is_update: bool = False
    qualities: list[float] = []
    bucket_file_path: str | None = None
    bucket_type: str | None = None
    mime_type: str | None = None
    is_archived: bool = False
    organization: str | None = None
    created_by: str | None = None
    tags: list[str] = []
    header_authorization: str | None = None


class UploadRequest(BaseModel):
    data: bytes
    size: int
    options: UploadOptions = Field(default_factory=UploadOptions)

    @model_validator(mode="after")
    def _check_qualities(self) -> UploadRequest:
        for quality in self.options.qualities:
            if not quality > 0 or quality == float("inf"):
                raise ValueError(f"Invalid quality specifier: {quality}")
        return self

    @property
    def distinct_qualities(self) -> list[float]:
        """Requested qualities plus the original, deduplicated by exact value."""
        return list(dict.fromkeys([ORIGINAL_QUALITY, *self.options.qualities]))
