"""Relocation engine -- move one episode file to its computed destination.

Order of operations for a single task:

1. notifier.started()
2. bail out early if the batch was cancelled or the source is not a file
3. create the destination's parent directory (failure: destination_unwritable)
4. same disk (root-prefix heuristic): atomic rename via os.replace
5. different disk, or the rename failed: copy in chunks, then delete source
6. success: touch timestamps, optional empty-dir cleanup, update the episode,
   notifier.success(); failure: notifier.failed(reason)

Filesystem errors never escape as exceptions; every path ends in a
MoveOutcome. A cancelled or failed copy leaves the partial destination file
on disk and the source untouched. Deleting the source after a good copy is
best-effort: a leftover source is logged, the move still counts as done.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from ..models import (
    COPY_CHUNK_SIZE,
    FailureReason,
    FileEpisode,
    MoveMethod,
    MoveOutcome,
    MoveStatus,
)
from ..notify import MoveNotifier
from .paths import (
    are_same_disk,
    ensure_parent_directory,
    is_writable_destination,
    list_filesystem_roots,
    remove_while_empty,
    touch_timestamps,
)

if TYPE_CHECKING:
    from ..config import MoverConfig

log = logger.bind(stage="relocate")


def relocate(
    source: Path,
    destination: Path,
    notifier: MoveNotifier,
    *,
    touch_ancestors: bool = False,
    roots: Sequence[str] | None = None,
    chunk_size: int = COPY_CHUNK_SIZE,
    cancel_event: threading.Event | None = None,
    remove_empty_dirs: bool = False,
    episode: FileEpisode | None = None,
) -> MoveOutcome:
    """Move source to destination using the fastest safe method.

    roots overrides filesystem root enumeration for the same-disk check.
    cancel_event, when set, stops a copy at the next chunk boundary; a
    rename already issued always completes.
    """
    source = Path(source)
    destination = Path(destination)
    log.debug(f"relocate(source={source}, destination={destination})")

    notifier.started()
    if episode is not None:
        episode.status = MoveStatus.MOVING

    outcome = _attempt_move(source, destination, notifier, roots, chunk_size, cancel_event)

    if not outcome.success:
        if episode is not None:
            if outcome.reason == FailureReason.SOURCE_MISSING:
                episode.status = MoveStatus.NO_FILE
            else:
                episode.status = MoveStatus.FAIL_TO_MOVE
        log.error(f"Unable to move {source} to {destination}: {outcome.reason.value}")
        notifier.failed(outcome.reason)
        return outcome

    if outcome.method != MoveMethod.NONE:
        touch_timestamps(destination, touch_ancestors)
        if remove_empty_dirs and outcome.source_deleted:
            remove_while_empty(source.parent)

    if episode is not None:
        episode.mark_moved(destination)
    log.info(f"Moved {source} to {destination} ({outcome.method.value})")
    notifier.success()
    return outcome


def move_episode(
    episode: FileEpisode,
    destination: Path,
    notifier: MoveNotifier,
    config: MoverConfig,
    roots: Sequence[str] | None = None,
    cancel_event: threading.Event | None = None,
) -> MoveOutcome:
    """Relocate an episode with preferences read from config right now."""
    return relocate(
        episode.path,
        destination,
        notifier,
        touch_ancestors=config.touch_ancestors,
        roots=roots,
        chunk_size=config.copy_chunk_size,
        cancel_event=cancel_event,
        remove_empty_dirs=config.remove_empty_dirs,
        episode=episode,
    )


def _attempt_move(
    source: Path,
    destination: Path,
    notifier: MoveNotifier,
    roots: Sequence[str] | None,
    chunk_size: int,
    cancel_event: threading.Event | None,
) -> MoveOutcome:
    if cancel_event is not None and cancel_event.is_set():
        log.info(f"Cancelled before start: {source.name}")
        return MoveOutcome.failed(source, destination, FailureReason.CANCELLED)

    if not source.is_file():
        log.warning(f"Source does not exist or is not a regular file: {source}")
        return MoveOutcome.failed(source, destination, FailureReason.SOURCE_MISSING)

    if not ensure_parent_directory(destination):
        return MoveOutcome.failed(source, destination, FailureReason.DESTINATION_UNWRITABLE)

    if _is_same_file(source, destination):
        log.info(f"Nothing to be done, already in place: {source}")
        return MoveOutcome.succeeded(source, destination, MoveMethod.NONE, source_deleted=False)

    if roots is None:
        roots = list_filesystem_roots()

    if are_same_disk(source, destination, roots):
        try:
            os.replace(source, destination)
        except OSError as e:
            log.warning(f"Rename failed, falling back to copy: {source} -> {destination}: {e}")
        else:
            return MoveOutcome.succeeded(source, destination, MoveMethod.RENAME)
    else:
        log.info(f"Different disks, copying: {source} -> {destination}")

    return _copy_and_delete(source, destination, notifier, chunk_size, cancel_event)


def _copy_and_delete(
    source: Path,
    destination: Path,
    notifier: MoveNotifier,
    chunk_size: int,
    cancel_event: threading.Event | None,
) -> MoveOutcome:
    if not is_writable_destination(destination):
        log.warning(f"Cannot write to destination: {destination}")
        return MoveOutcome.failed(
            source, destination, FailureReason.DESTINATION_UNWRITABLE, MoveMethod.COPY
        )

    reason = copy_with_progress(source, destination, notifier, chunk_size, cancel_event)
    if reason is not None:
        return MoveOutcome.failed(source, destination, reason, MoveMethod.COPY)

    deleted = _delete_source(source)
    return MoveOutcome.succeeded(source, destination, MoveMethod.COPY, source_deleted=deleted)


def copy_with_progress(
    source: Path,
    destination: Path,
    notifier: MoveNotifier,
    chunk_size: int = COPY_CHUNK_SIZE,
    cancel_event: threading.Event | None = None,
) -> FailureReason | None:
    """Stream source into destination chunk by chunk.

    Calls notifier.progress(copied, total) after every chunk. Returns None
    on success, CANCELLED when the notifier or cancel_event asks to stop,
    COPY_FAILED on an I/O error. The partial destination is not removed.
    A chunk_size below 1 falls back to COPY_CHUNK_SIZE.
    """
    if chunk_size <= 0:
        # read(0) returns b"" and would end the copy as if at EOF
        log.warning(f"Invalid chunk size {chunk_size}, using {COPY_CHUNK_SIZE}")
        chunk_size = COPY_CHUNK_SIZE

    copied = 0
    try:
        with open(source, "rb") as src, open(destination, "wb") as dst:
            total = os.fstat(src.fileno()).st_size
            while True:
                chunk = src.read(chunk_size)
                if not chunk:
                    break
                dst.write(chunk)
                copied += len(chunk)
                keep_going = notifier.progress(copied, total)
                if not keep_going or (cancel_event is not None and cancel_event.is_set()):
                    log.warning(
                        f"Copy cancelled after {copied:,} of {total:,} bytes; "
                        f"partial file left at {destination}"
                    )
                    return FailureReason.CANCELLED
    except OSError as e:
        log.error(f"Error copying {source} -> {destination} after {copied:,} bytes: {e}")
        return FailureReason.COPY_FAILED

    log.debug(f"Copied {copied:,} bytes: {source} -> {destination}")
    return None


def _delete_source(source: Path) -> bool:
    try:
        source.unlink()
    except OSError as e:
        log.warning(f"Copied, but could not delete source {source}: {e}")
        return False
    return True


def _is_same_file(source: Path, destination: Path) -> bool:
    if not destination.exists():
        return False
    try:
        return os.path.samefile(source, destination)
    except OSError:
        return False
