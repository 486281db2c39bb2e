"""Trace report module for pwtrace.

This module provides the data structures for aggregating Playwright trace
archives into a static HTML report.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pwtrace.naming import TraceStatus


@dataclass
class TraceArtifact:
    """One trace archive found on disk.

    Rebuilt from the filename on every scan; nothing is persisted besides
    the archive itself.

    Attributes:
        test_slug: Filesystem-safe test identifier from the filename.
        status: Outcome encoded in the filename (unknown for legacy names).
        created_at_ms: Epoch milliseconds from the filename, if present.
        size_bytes: File size at scan time.
        filename: On-disk basename, used to build viewer links.
        path: Full path of the archive.
    """

    test_slug: str
    status: TraceStatus
    created_at_ms: Optional[int]
    size_bytes: int
    filename: str
    path: Optional[Path] = None

    @property
    def display_name(self) -> str:
        """Human-readable test name (underscores shown as spaces)."""
        return self.test_slug.replace("_", " ")

    @property
    def passed(self) -> bool:
        return self.status is TraceStatus.PASS

    @property
    def failed(self) -> bool:
        return self.status is TraceStatus.FAIL


@dataclass
class TraceReport:
    """Artifacts in display order plus aggregate counts.

    Attributes:
        project_name: Name shown in the report header.
        traces_dir: Directory the archives were collected from, as shown
            in CLI commands.
        artifacts: Artifacts sorted most recent first.
    """

    project_name: str
    traces_dir: str
    artifacts: list[TraceArtifact] = field(default_factory=list)

    @property
    def total(self) -> int:
        """Total number of archives."""
        return len(self.artifacts)

    @property
    def passed(self) -> int:
        """Number of archives tagged PASS."""
        return sum(1 for a in self.artifacts if a.status is TraceStatus.PASS)

    @property
    def failed(self) -> int:
        """Number of archives tagged FAIL."""
        return sum(1 for a in self.artifacts if a.status is TraceStatus.FAIL)

    @property
    def unknown(self) -> int:
        """Number of archives without a status tag."""
        return sum(1 for a in self.artifacts if a.status is TraceStatus.UNKNOWN)

