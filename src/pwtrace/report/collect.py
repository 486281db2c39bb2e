"""Discover trace archives under a directory."""
from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Iterator, Union

from pwtrace.naming import ARCHIVE_SUFFIX, parse_artifact_name
from pwtrace.report import TraceArtifact

logger = logging.getLogger(__name__)


def _walk_archives(root: Path) -> Iterator[Path]:
    """Yield candidate ``*.zip`` paths under root in lexicographic order."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            if name.endswith(ARCHIVE_SUFFIX):
                yield Path(dirpath) / name


def build_artifact(path: Path, size_bytes: int) -> TraceArtifact:
    """Build a TraceArtifact from an archive path and its size."""
    parsed = parse_artifact_name(path.name)
    return TraceArtifact(
        test_slug=parsed.slug,
        status=parsed.status,
        created_at_ms=parsed.timestamp_ms,
        size_bytes=size_bytes,
        filename=path.name,
        path=path,
    )


def sort_artifacts(artifacts: list[TraceArtifact]) -> list[TraceArtifact]:
    """Sort newest first; undated archives last, ties keep encounter order."""
    return sorted(
        artifacts,
        key=lambda a: (a.created_at_ms is None, -(a.created_at_ms or 0)),
    )


def collect_artifacts(directory: Union[str, Path]) -> list[TraceArtifact]:
    """Return metadata for every ``*.zip`` archive found under directory.

    Non-regular files and files that cannot be stat'ed are skipped. A
    missing directory yields an empty list.

    Args:
        directory: Root directory to scan recursively.

    Returns:
        Artifacts sorted most recent first.
    """
    root = Path(directory)
    artifacts: list[TraceArtifact] = []

    for path in _walk_archives(root):
        try:
            st = path.stat()
        except OSError as exc:
            logger.debug("Skipping unreadable trace %s: %s", path, exc)
            continue
        if not stat.S_ISREG(st.st_mode):
            continue
        artifacts.append(build_artifact(path, st.st_size))

    logger.debug("Collected %d trace archive(s) from %s", len(artifacts), root)
    return sort_artifacts(artifacts)
