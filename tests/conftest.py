"""Shared fixtures: generated images, credentials and file records."""

from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image

from filesdk.models.credential import ScopedCredential
from filesdk.models.file import FileRecord, FileVariant
from filesdk.settings import Settings


def _make_image(width: int = 400, height: int = 300, fmt: str = "JPEG", color=(200, 40, 40)) -> bytes:
    mode = "RGBA" if fmt == "PNG" else "RGB"
    fill = (*color, 255) if mode == "RGBA" else color
    img = Image.new(mode, (width, height), fill)
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def _local_credential(base_dir, **meta) -> ScopedCredential:
    return ScopedCredential(
        bucketType="local",
        sas="",
        meta={"baseDir": str(base_dir), "baseUrl": "https://cdn.test", **meta},
    )


def _sample_record(file_id: str = "f1", qualities=(1, 0.5, 200), **overrides) -> FileRecord:
    variants = []
    for quality in qualities:
        suffix = "" if quality == 1 else (f"@{quality}" if quality > 1 else f"@{int(quality * 100)}pc")
        variants.append(
            FileVariant(
                quality=quality,
                url=f"https://cdn.test/photos/cat{suffix}.jpg",
                bucket_file_path="photos",
                bucket_file_name=f"cat{suffix}.jpg",
            )
        )
    defaults = dict(
        id=file_id,
        name="cat.jpg",
        bucket_type="local",
        bucket_file_path="photos",
        bucket_file_name="cat.jpg",
        original_file_name="cat.jpg",
        extension="jpg",
        size=1234,
        url=variants[0].url,
        thumbnail_url=min(variants, key=lambda v: v.quality).url,
        compressions=variants,
        mime_type="image/jpeg",
    )
    defaults.update(overrides)
    return FileRecord(**defaults)


@pytest.fixture()
def make_image():
    return _make_image


@pytest.fixture()
def local_credential():
    return _local_credential


@pytest.fixture()
def sample_record():
    return _sample_record


@pytest.fixture()
def sdk_settings() -> Settings:
    return Settings(_env_file=None, file_api_url="https://files.test/api", max_workers=2)
