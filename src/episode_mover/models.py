"""Core enums, constants, and data types for the episode mover.

Enums:
    MoveStatus     -- Move state of a FileEpisode (unchecked through fail_to_move).
    FailureReason  -- Why a relocation task failed (terminal outcomes only).
    MoveMethod     -- How a successful relocation was carried out.
    ErrorCategory  -- Failure classification for caller retry decisions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class MoveStatus(StrEnum):
    UNCHECKED = "unchecked"
    NO_FILE = "no_file"
    ORIGINAL = "original"
    MOVING = "moving"
    RENAMED = "renamed"
    FAIL_TO_MOVE = "fail_to_move"


class FailureReason(StrEnum):
    DESTINATION_UNWRITABLE = "destination_unwritable"
    COPY_FAILED = "copy_failed"
    CANCELLED = "cancelled"
    SOURCE_MISSING = "source_missing"


class MoveMethod(StrEnum):
    RENAME = "rename"
    COPY = "copy"
    NONE = "none"


class ErrorCategory(StrEnum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"


# Chunk size for the copy-then-delete fallback
COPY_CHUNK_SIZE = 32768

# Subdirectory for batch duplicates that would otherwise share a destination
DUPLICATES_DIRECTORY = "versions"


class FileEpisode:
    """A media file waiting to be moved.

    The path is only replaced through mark_moved(), after the filesystem
    move has been confirmed. Anyone reading `path` while a move is in
    flight sees the pre-move location.
    """

    def __init__(self, path: Path, status: MoveStatus = MoveStatus.UNCHECKED) -> None:
        self._path = Path(path)
        self.status = status

    @property
    def path(self) -> Path:
        return self._path

    @property
    def file_size(self) -> int:
        """Current size in bytes, or 0 if the file is gone."""
        try:
            return self._path.stat().st_size
        except OSError:
            return 0

    def mark_moved(self, new_path: Path) -> None:
        self._path = Path(new_path)
        self.status = MoveStatus.RENAMED

    def __repr__(self) -> str:
        return f"FileEpisode(path={str(self._path)!r}, status={self.status.value})"


@dataclass
class MoveRequest:
    """One relocation task: move `source` to `destination`."""

    source: Path
    destination: Path
    episode: FileEpisode | None = None

    def __post_init__(self) -> None:
        self.source = Path(self.source)
        self.destination = Path(self.destination)


@dataclass(frozen=True)
class MoveOutcome:
    """Terminal result of one relocation task."""

    source: Path
    destination: Path
    success: bool
    reason: FailureReason | None = None
    method: MoveMethod | None = None
    source_deleted: bool = True

    @classmethod
    def succeeded(
        cls,
        source: Path,
        destination: Path,
        method: MoveMethod,
        source_deleted: bool = True,
    ) -> MoveOutcome:
        return cls(
            source=source,
            destination=destination,
            success=True,
            method=method,
            source_deleted=source_deleted,
        )

    @classmethod
    def failed(
        cls,
        source: Path,
        destination: Path,
        reason: FailureReason,
        method: MoveMethod | None = None,
    ) -> MoveOutcome:
        return cls(
            source=source,
            destination=destination,
            success=False,
            reason=reason,
            method=method,
            source_deleted=False,
        )


@dataclass
class BatchResult:
    """Result summary from a parallel batch move run."""

    completed: int = 0
    failed: int = 0
    total: int = 0
    outcomes: list[MoveOutcome] = field(default_factory=list)

    @property
    def failures(self) -> list[MoveOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def retriable(self) -> list[MoveOutcome]:
        """Failed outcomes worth offering to retry (transient category)."""
        from .errors import categorize_failure

        return [
            o
            for o in self.failures
            if o.reason is not None
            and categorize_failure(o.reason) == ErrorCategory.TRANSIENT
        ]
