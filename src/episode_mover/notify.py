"""Notifier contract between the relocation engine and its caller.

The engine calls started() exactly once before touching the filesystem,
progress() after every copied chunk (copy fallback only), and exactly one
of success() / failed() as the terminal call. progress() returning False
asks the engine to stop at the current chunk boundary.
"""

from __future__ import annotations

from typing import Protocol

import click
from loguru import logger

from .models import FailureReason

log = logger.bind(stage="notify")


class MoveNotifier(Protocol):
    def started(self) -> None: ...

    def progress(self, bytes_so_far: int, total_bytes: int) -> bool: ...

    def success(self) -> None: ...

    def failed(self, reason: FailureReason) -> None: ...


def format_file_size(length: int) -> str:
    """Human-readable size: '512 Bytes', '31.5 KB', '10.0 MB'."""
    if length < 1024:
        return f"{length} Bytes"
    if length < 1024 << 10:
        return f"{length / 1024:.1f} KB"
    return f"{length / 1024 / 1024:.1f} MB"


class NullNotifier:
    """Ignores every notification and never asks to cancel."""

    def started(self) -> None:
        pass

    def progress(self, bytes_so_far: int, total_bytes: int) -> bool:
        return True

    def success(self) -> None:
        pass

    def failed(self, reason: FailureReason) -> None:
        pass


class LoggingNotifier:
    """Reports the move through loguru, progress every 10% at debug level."""

    def __init__(self, label: str) -> None:
        self.label = label
        self._last_decile = -1

    def started(self) -> None:
        log.info(f"Moving {self.label}")

    def progress(self, bytes_so_far: int, total_bytes: int) -> bool:
        if total_bytes <= 0:
            return True
        decile = (bytes_so_far * 10) // total_bytes
        if decile != self._last_decile:
            self._last_decile = decile
            log.debug(
                f"{self.label}: {decile * 10}% "
                f"({format_file_size(bytes_so_far)} / {format_file_size(total_bytes)})"
            )
        return True

    def success(self) -> None:
        log.info(f"Moved {self.label}")

    def failed(self, reason: FailureReason) -> None:
        log.warning(f"Failed to move {self.label}: {reason.value}")


class EchoNotifier:
    """Single-line terminal progress via click, for interactive runs."""

    def __init__(self, label: str) -> None:
        self.label = label

    def started(self) -> None:
        click.echo(f"  Moving {self.label}")

    def progress(self, bytes_so_far: int, total_bytes: int) -> bool:
        pct = (bytes_so_far * 100 // total_bytes) if total_bytes else 100
        click.echo(
            f"\r  {self.label}: {pct:3d}% "
            f"({format_file_size(bytes_so_far)} / {format_file_size(total_bytes)})",
            nl=False,
        )
        return True

    def success(self) -> None:
        click.echo(f"\r  OK {self.label}")

    def failed(self, reason: FailureReason) -> None:
        click.echo(f"\r  FAILED {self.label} ({reason.value})")
