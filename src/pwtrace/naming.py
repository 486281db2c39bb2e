"""Trace archive naming and status tagging.

Archives are named ``<slug>-<epoch-ms>.zip`` while a test runs and are
renamed to ``<slug>-PASS-<epoch-ms>.zip`` or ``<slug>-FAIL-<epoch-ms>.zip``
once the outcome is known. The filename is the only metadata store: the
report generator parses status and timestamp back out of it.
"""
from __future__ import annotations

import logging
import os
import re
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_UNDERSCORE_RUNS = re.compile(r"_+")

TAGGED_NAME = re.compile(r"^(?P<slug>.*?)-(?P<status>PASS|FAIL)-(?P<ts>\d{13})\.zip$")
UNTAGGED_NAME = re.compile(r"^(?P<slug>.*)-(?P<ts>\d{13})\.zip$")

ARCHIVE_SUFFIX = ".zip"


class TraceStatus(str, Enum):
    """Outcome recorded in an archive filename."""

    PASS = "pass"
    FAIL = "fail"
    UNKNOWN = "unknown"

    @property
    def tag(self) -> str:
        """Uppercase filename segment (``PASS``/``FAIL``)."""
        return self.value.upper()


@dataclass(frozen=True)
class ParsedName:
    """Metadata recovered from an archive filename."""

    slug: str
    status: TraceStatus
    timestamp_ms: Optional[int]

    @property
    def display_name(self) -> str:
        return self.slug.replace("_", " ")


def derive_slug(name: str) -> str:
    """Convert an arbitrary test name into a filesystem-safe slug."""
    return _UNDERSCORE_RUNS.sub("_", _UNSAFE_CHARS.sub("_", name))


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def build_path(test_name: str, output_dir: Union[str, Path], now_millis: int) -> Path:
    """Return ``output_dir/<slug>-<now_millis>.zip`` for a test name."""
    return Path(output_dir) / f"{derive_slug(test_name)}-{now_millis}{ARCHIVE_SUFFIX}"


def _coerce_status(status: Union[TraceStatus, str]) -> TraceStatus:
    try:
        value = TraceStatus(status.lower() if isinstance(status, str) else status)
    except ValueError:
        raise ValueError(f"status must be 'pass' or 'fail', got {status!r}") from None
    if value is TraceStatus.UNKNOWN:
        raise ValueError("cannot tag an archive with status 'unknown'")
    return value


def tag_with_status(path: Union[str, Path], status: Union[TraceStatus, str]) -> Path:
    """Rename an archive so its filename carries the test outcome.

    ``<slug>-<ts>.zip`` becomes ``<slug>-<STATUS>-<ts>.zip``. An archive that
    already carries a status is re-tagged: its status segment is replaced,
    so a name never holds two status segments. Names matching neither form
    are returned unchanged.

    Rename failures are logged and the original path is returned; callers
    should re-derive the status from whatever name ends up on disk.

    Raises:
        ValueError: If ``status`` is not pass or fail.
    """
    target = _coerce_status(status)
    path = Path(path)
    filename = path.name

    match = TAGGED_NAME.match(filename)
    if match:
        if match.group("status") == target.tag:
            return path
    else:
        match = UNTAGGED_NAME.match(filename)
        if not match:
            return path

    new_path = path.with_name(f"{match.group('slug')}-{target.tag}-{match.group('ts')}{ARCHIVE_SUFFIX}")
    try:
        os.replace(path, new_path)
    except OSError as exc:
        logger.warning("Could not rename trace file %s: %s", path, exc)
        return path

    logger.debug("Tagged trace %s -> %s", filename, new_path.name)
    return new_path


def parse_artifact_name(filename: str) -> ParsedName:
    """Parse an archive basename back into slug, status and timestamp.

    Tagged names are tried first, then legacy untagged names. Anything else
    falls back to the basename without ``.zip`` as slug, with an unknown
    status and no timestamp.
    """
    match = TAGGED_NAME.match(filename)
    if match:
        return ParsedName(
            slug=match.group("slug"),
            status=TraceStatus(match.group("status").lower()),
            timestamp_ms=int(match.group("ts")),
        )

    match = UNTAGGED_NAME.match(filename)
    if match:
        return ParsedName(
            slug=match.group("slug"),
            status=TraceStatus.UNKNOWN,
            timestamp_ms=int(match.group("ts")),
        )

    base = filename[: -len(ARCHIVE_SUFFIX)] if filename.endswith(ARCHIVE_SUFFIX) else filename
    return ParsedName(slug=base, status=TraceStatus.UNKNOWN, timestamp_ms=None)
