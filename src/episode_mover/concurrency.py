"""Per-library file lock so two mover runs never write into the same library."""

import hashlib
import os
import sys
from pathlib import Path

from loguru import logger

log = logger.bind(stage="concurrency")


class LockError(Exception):
    """Raised when lock cannot be acquired."""


def library_lock_path(lock_dir: Path, dest_dir: Path) -> Path:
    """Lock file for one library: mover-<hash of the library path>.lock."""
    key = os.path.normcase(os.path.abspath(dest_dir))
    digest = hashlib.sha256(key.encode()).hexdigest()[:16]
    return lock_dir / f"mover-{digest}.lock"


def acquire_library_lock(
    lock_dir: Path, dest_dir: Path, skip: bool = False
) -> object | None:
    """Lock dest_dir for this process; runs on other libraries are not blocked.

    Returns the lock file handle (keep reference to maintain lock),
    or None if locking was skipped.
    Raises LockError if another instance holds the lock for dest_dir.
    """
    log.debug(f"acquire_library_lock(lock_dir={lock_dir}, dest_dir={dest_dir}, skip={skip})")

    if skip:
        log.debug("Skipping lock acquisition")
        return None

    lock_dir.mkdir(parents=True, exist_ok=True)
    lock_file = library_lock_path(lock_dir, dest_dir)

    fh = open(lock_file, "a+")
    try:
        _lock_nonblocking(fh)
    except OSError:
        fh.close()
        log.warning(f"Library {dest_dir} is locked by {lock_file}")
        raise LockError(f"Another mover instance is running on {dest_dir}")

    # Record which library the hashed name belongs to
    fh.seek(0)
    fh.truncate()
    fh.write(f"{os.getpid()} {dest_dir}\n")
    fh.flush()
    log.info(f"Lock acquired for {dest_dir} at {lock_file}")
    return fh


def _lock_nonblocking(fh) -> None:
    if sys.platform == "win32":
        import msvcrt

        fh.seek(0)
        msvcrt.locking(fh.fileno(), msvcrt.LK_NBLCK, 1)
    else:
        import fcntl

        fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
