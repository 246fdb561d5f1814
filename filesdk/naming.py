"""Object naming: collision-free base names and per-quality variant names.

Variant names follow ``{stem}{suffix}{.ext}`` where the suffix is empty for
the original, ``@{width}`` for an absolute width and ``@{percent}pc`` for a
proportional scale. ``photo.jpg`` at quality 0.5 becomes ``photo@50pc.jpg``
and at quality 200 becomes ``photo@200.jpg``.

Uniqueness is only as strong as the backend's existence probe: two uploads
probing the same candidate in the same millisecond can both see it as free.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from decimal import Decimal

from ulid import ULID

from filesdk.errors import InvalidArgumentError, NameCollisionError, NotFoundError
from filesdk.models.file import ORIGINAL_QUALITY

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 25
DEFAULT_PREFIX = "file"

_SUFFIX_RE = re.compile(r"^@(?P<value>\d+(?:\.\d+)?)(?P<pc>pc)?$")


def split_name(name: str) -> tuple[str, str]:
    """Split ``name`` into (stem, extension) on the last dot.

    A leading dot does not start an extension, so ``.env`` has none.
    """
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return name, ""
    return stem, ext


def join_name(stem: str, ext: str) -> str:
    return f"{stem}.{ext}" if ext else stem


def _format_number(value: Decimal) -> str:
    # Fixed-point text of the exact value; never exponent notation.
    return format(value.normalize(), "f")


def quality_suffix(quality: float) -> str:
    """Suffix for ``quality``; distinct qualities always get distinct suffixes."""
    if quality == ORIGINAL_QUALITY:
        return ""
    # repr() is the shortest text that reads back as the same float.
    value = Decimal(repr(quality))
    if quality > 1:
        return f"@{_format_number(value)}"
    return f"@{_format_number(value * 100)}pc"


def parse_quality_suffix(suffix: str) -> float:
    """Inverse of :func:`quality_suffix`."""
    if suffix == "":
        return ORIGINAL_QUALITY
    match = _SUFFIX_RE.match(suffix)
    if not match:
        raise InvalidArgumentError(f"Not a quality suffix: {suffix!r}")
    value = Decimal(match.group("value"))
    if match.group("pc"):
        value /= 100
    return float(value)


def variant_object_name(base_name: str, quality: float) -> str:
    stem, ext = split_name(base_name)
    return join_name(f"{stem}{quality_suffix(quality)}", ext)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def generate_name(prefix: str = DEFAULT_PREFIX, now_ms: int | None = None) -> str:
    """Synthesize a fresh name: prefix, millisecond timestamp and random tail."""
    now_ms = _now_ms() if now_ms is None else now_ms
    # The last 16 characters of a ULID are its 80 random bits.
    random_tail = str(ULID())[-10:].lower()
    return f"{prefix or DEFAULT_PREFIX}-{now_ms}-{random_tail}"


class NameResolver:
    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        if max_attempts < 1:
            raise InvalidArgumentError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.clock = clock

    def resolve(
        self,
        desired_name: str | None,
        is_update: bool,
        exists: Callable[[str], bool],
        prefix: str = DEFAULT_PREFIX,
    ) -> str:
        if is_update:
            if not desired_name:
                raise InvalidArgumentError("Cannot update a file without a name")
            if not exists(desired_name):
                raise NotFoundError(f"Cannot update missing object: {desired_name}")
            logger.debug("Resolved update target %s", desired_name)
            return desired_name

        candidate = desired_name or generate_name(prefix, self.clock())
        stem, ext = split_name(candidate)
        last_stamp = 0
        for attempt in range(1, self.max_attempts + 1):
            if not exists(candidate):
                logger.debug("Resolved name %s after %d probe(s)", candidate, attempt)
                return candidate
            # Strictly increasing stamps keep every candidate distinct.
            last_stamp = max(self.clock(), last_stamp + 1)
            candidate = join_name(f"{stem}-{last_stamp}", ext)

        logger.warning("No free name for %s after %d attempts", desired_name, self.max_attempts)
        raise NameCollisionError(
            f"Could not find a free name for {desired_name or stem!r} "
            f"after {self.max_attempts} attempts"
        )
