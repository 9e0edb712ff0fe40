"""Filesystem helpers for the relocation engine.

Root enumeration and the same-disk heuristic, destination writability
checks, post-move timestamp updates, and emptied-directory cleanup.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path

import psutil
from loguru import logger

log = logger.bind(stage="paths")


def list_filesystem_roots() -> list[str]:
    """Return the mount points of all mounted partitions.

    An empty list (enumeration failed) is treated by are_same_disk() as a
    single-root system.
    """
    try:
        partitions = psutil.disk_partitions(all=False)
    except (OSError, RuntimeError) as e:
        log.warning(f"Unable to list filesystem roots: {e}")
        return []
    roots = sorted({p.mountpoint for p in partitions if p.mountpoint})
    log.debug(f"list_filesystem_roots: {roots}")
    return roots


def _with_sep(root: str) -> str:
    return root if root.endswith(os.sep) else root + os.sep


def are_same_disk(path_a: Path, path_b: Path, roots: Sequence[str]) -> bool:
    """Heuristic: do both paths live under the same filesystem root?

    The root whose path is the longest prefix of path_a decides; path_b
    must start with that same root. Fewer than two roots means every path
    is on the same disk. Symlinks, bind mounts and network mounts can fool
    this test, which is why a failed rename still falls back to copying.
    """
    if len(roots) < 2:
        return True

    a = _with_sep(os.path.abspath(path_a))
    b = _with_sep(os.path.abspath(path_b))

    matching = [r for r in (_with_sep(str(root)) for root in roots) if a.startswith(r)]
    if not matching:
        log.debug(f"are_same_disk: no root contains {path_a}")
        return False

    root = max(matching, key=len)
    same = b.startswith(root)
    log.debug(f"are_same_disk: root={root} a={path_a} b={path_b} same={same}")
    return same


def ensure_parent_directory(path: Path) -> bool:
    """Create path's parent (and intermediates). False if that fails."""
    parent = path.parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        log.warning(f"Unable to create directory {parent}: {e}")
        return False
    if not parent.is_dir():
        log.warning(f"Cannot use {parent}: not a directory")
        return False
    return True


def is_writable_destination(path: Path) -> bool:
    """True if path exists and is writable, or is absent with a writable parent."""
    if path.exists():
        return os.access(path, os.W_OK)
    return os.access(path.parent, os.W_OK)


def touch_timestamps(path: Path, touch_ancestors: bool = False) -> None:
    """Set the modified time of path (and optionally parent + grandparent) to now.

    The ancestors are touched only so the containing folders sort as
    recently changed in file browsers. Every failure here is logged and
    ignored.
    """
    targets = [path]
    if touch_ancestors:
        targets.extend([path.parent, path.parent.parent])

    for target in targets:
        try:
            os.utime(target)
        except OSError as e:
            log.warning(f"Unable to set modification time on {target}: {e}")


def remove_while_empty(directory: Path, stop_at: Path | None = None) -> None:
    """Remove directory and then each parent while they are empty.

    Stops at stop_at, the filesystem root, the first non-empty directory,
    or the first directory that cannot be removed.
    """
    current = directory
    while current != stop_at and current != current.parent:
        try:
            if current.is_dir() and not any(current.iterdir()):
                current.rmdir()
                log.info(f"Removed empty directory: {current}")
            else:
                break
        except OSError:
            break
        current = current.parent
