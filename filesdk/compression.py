"""Resize/recompress raster images into quality variants."""

from __future__ import annotations

import logging
from concurrent import futures
from dataclasses import dataclass, field
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from filesdk.models.file import ORIGINAL_QUALITY

logger = logging.getLogger(__name__)

# Formats whose encoder understands a 1-100 ``quality`` parameter.
_LOSSY_FORMATS = {"JPEG", "WEBP", "MPO"}

_DECODE_ERRORS = (UnidentifiedImageError, OSError, ValueError, SyntaxError, Image.DecompressionBombError)


@dataclass
class CompressedImage:
    quality: float
    data: bytes


@dataclass
class CompressionResult:
    """Outcome of :meth:`ImageCompressor.expand`.

    ``skipped_reason`` is set when only the original could be produced; the
    upload carries on with that single variant.
    """

    images: list[CompressedImage] = field(default_factory=list)
    mime_type: str | None = None
    skipped_reason: str | None = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None

    @property
    def qualities(self) -> list[float]:
        return [image.quality for image in self.images]


def target_size(width: int, height: int, quality: float) -> tuple[int, int]:
    """Output size for ``quality``: absolute width above 1, scale factor otherwise."""
    if quality > 1:
        new_width = max(1, round(quality))
        new_height = max(1, round(height * new_width / width))
        return new_width, new_height
    return max(1, round(width * quality)), max(1, round(height * quality))


def encode_quality(quality: float) -> int | None:
    if quality > 1:
        return None
    return max(1, min(100, round(quality * 100)))


def _open_image(data: bytes) -> Image.Image:
    image = Image.open(BytesIO(data))
    # Image.open is lazy; load() surfaces truncated or corrupt pixel data.
    image.load()
    return image


def _render(image: Image.Image, image_format: str, quality: float) -> bytes:
    resized = image.resize(target_size(image.width, image.height, quality))
    params = {}
    level = encode_quality(quality)
    if level is not None and image_format in _LOSSY_FORMATS:
        params["quality"] = level
    buf = BytesIO()
    resized.save(buf, format=image_format, **params)
    return buf.getvalue()


class ImageCompressor:
    def __init__(self, max_workers: int = 4) -> None:
        self.max_workers = max_workers

    def compress(self, data: bytes, qualities: list[float]) -> CompressionResult:
        """Produce one rendition per distinct non-original quality.

        Never raises for undecodable input: the result comes back empty with
        ``skipped_reason`` set instead.
        """
        wanted = [q for q in dict.fromkeys(qualities) if q != ORIGINAL_QUALITY]

        try:
            image = _open_image(data)
        except _DECODE_ERRORS as exc:
            return self._skip(f"not a decodable image ({exc.__class__.__name__}: {exc})", bool(wanted))

        image_format = image.format or ""
        mime_type = Image.MIME.get(image_format)
        if not mime_type or not mime_type.startswith("image/"):
            return self._skip(f"unsupported image format {image_format!r}", bool(wanted))

        if not wanted:
            return CompressionResult(mime_type=mime_type)

        # Some formats (XPM, PSD, ...) can be read but not written back.
        if image_format not in Image.SAVE:
            result = self._skip(f"no encoder for image format {image_format!r}")
            result.mime_type = mime_type
            return result

        try:
            with futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                rendered = list(executor.map(lambda q: _render(image, image_format, q), wanted))
        except (*_DECODE_ERRORS, KeyError) as exc:
            result = self._skip(f"encoding failed ({exc.__class__.__name__}: {exc})")
            result.mime_type = mime_type
            return result

        images = [CompressedImage(quality=q, data=out) for q, out in zip(wanted, rendered)]
        logger.debug("Compressed %s image into %d variant(s)", image_format, len(images))
        return CompressionResult(images=images, mime_type=mime_type)

    def expand(self, data: bytes, qualities: list[float]) -> CompressionResult:
        """Like :meth:`compress`, with the untouched original prepended as quality 1."""
        result = self.compress(data, qualities)
        result.images.insert(0, CompressedImage(quality=ORIGINAL_QUALITY, data=data))
        return result

    @staticmethod
    def _skip(reason: str, had_work: bool = True) -> CompressionResult:
        if had_work:
            logger.warning("Compression skipped, storing original only: %s", reason)
        else:
            logger.debug("No variants requested; input is %s", reason)
        return CompressionResult(skipped_reason=reason)
