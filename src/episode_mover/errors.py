"""Exception hierarchy and failure categorization for the episode mover.

Filesystem failures during a relocation are reported as MoveOutcome values,
not exceptions. The exceptions below are for caller and setup errors.
"""

from .models import ErrorCategory, FailureReason


class MoverError(Exception):
    """Base exception for all episode mover errors."""


class ConfigError(MoverError):
    """Invalid or missing configuration."""


class DuplicateDestinationError(MoverError):
    """Two tasks in one batch target the same destination path."""

    def __init__(self, destination: str, count: int) -> None:
        super().__init__(f"{count} tasks target the same destination: {destination}")
        self.destination = destination
        self.count = count


_TRANSIENT_REASONS = frozenset({FailureReason.COPY_FAILED, FailureReason.CANCELLED})


def categorize_failure(reason: FailureReason) -> ErrorCategory:
    """Map a failure reason to an error category.

    Copy failures (disk full, device removed) and cancellations may succeed
    on a later attempt. An unwritable destination or a missing source will
    not change without user action.
    """
    if reason in _TRANSIENT_REASONS:
        return ErrorCategory.TRANSIENT
    return ErrorCategory.PERMANENT
