"""Parallel batch mover for episode files.

Runs one relocation task per (source, destination) pair on a bounded
thread pool and reports each outcome as it completes. Tasks are
independent: no ordering between them, no automatic retries.
"""

import os
import threading
from collections import Counter, defaultdict
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path

import click
from loguru import logger

from .config import MoverConfig
from .errors import DuplicateDestinationError
from .models import BatchResult, FailureReason, MoveMethod, MoveOutcome, MoveRequest
from .notify import LoggingNotifier, MoveNotifier
from .ops.naming import versioned_path
from .ops.paths import list_filesystem_roots
from .ops.relocate import relocate

log = logger.bind(stage="orchestrator")

NotifierFactory = Callable[[MoveRequest], MoveNotifier]


def _default_notifier(request: MoveRequest) -> MoveNotifier:
    return LoggingNotifier(request.source.name)


def _destination_key(path: Path) -> str:
    return os.path.normcase(os.path.abspath(path))


def _is_occupied(destination: Path, group: Sequence[MoveRequest]) -> bool:
    """True if destination holds a file that none of the group's sources is."""
    if not os.path.lexists(destination):
        return False
    for request in group:
        try:
            if os.path.samefile(request.source, destination):
                return False
        except OSError:
            continue
    return True


def _source_size(request: MoveRequest) -> int:
    try:
        return request.source.stat().st_size
    except OSError:
        return 0


class MoveOrchestrator:
    """Bounded-pool batch processor for episode moves.

    Attributes:
        config: Mover configuration (pool size, move preferences)
        notifier_factory: Builds one notifier per task
        roots: Filesystem roots for the same-disk check; enumerated once
            per batch when None
    """

    def __init__(
        self,
        config: MoverConfig,
        notifier_factory: NotifierFactory | None = None,
        roots: Sequence[str] | None = None,
    ) -> None:
        self.config = config
        self.notifier_factory = notifier_factory or _default_notifier
        self.roots = roots
        self._cancel = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Ask every in-flight and queued task to stop.

        Copies stop at the next chunk boundary. Tasks not yet started report
        cancelled without touching any file. A rename already issued finishes.
        Only sets an event, so it is safe to call from a signal handler.
        """
        self._cancel.set()

    def resolve_conflicts(self, requests: Sequence[MoveRequest]) -> list[MoveRequest]:
        """Give every request a distinct destination that holds no other file.

        Requests sharing a destination are ordered largest source first; the
        first keeps the destination, the rest move to versions/<name> (N).
        When a different file already sits at the destination, every request
        in the group is versioned. N skips any path another request targets
        or that already exists on disk.
        """
        groups: dict[str, list[MoveRequest]] = defaultdict(list)
        for request in requests:
            groups[_destination_key(request.destination)].append(request)
        taken = set(groups)

        resolved: list[MoveRequest] = []
        for group in groups.values():
            destination = group[0].destination
            occupied = _is_occupied(destination, group)
            if len(group) == 1 and not occupied:
                resolved.append(group[0])
                continue

            group.sort(key=_source_size, reverse=True)
            if occupied:
                log.warning(f"{destination} already exists; versioning incoming files")
            else:
                log.warning(
                    f"{len(group)} files target {destination}; versioning the smaller ones"
                )
                resolved.append(group[0])
                group = group[1:]

            index = 1
            for request in group:
                index += 1
                dest = versioned_path(destination, index)
                while _destination_key(dest) in taken or os.path.lexists(dest):
                    index += 1
                    dest = versioned_path(destination, index)
                taken.add(_destination_key(dest))
                log.info(f"Conflict: {request.source.name} -> {dest}")
                resolved.append(MoveRequest(request.source, dest, request.episode))
        return resolved

    def iter_outcomes(
        self, requests: Sequence[MoveRequest], resolve: bool = True
    ) -> Iterator[MoveOutcome]:
        """Run the batch, yielding each task's outcome as it completes.

        With resolve=False the caller guarantees distinct destinations;
        duplicates raise DuplicateDestinationError before anything runs.
        """
        if not requests:
            return

        planned = self.resolve_conflicts(requests) if resolve else list(requests)
        self._check_disjoint(planned)

        if self.config.dry_run:
            for request in planned:
                click.echo(f"  [DRY-RUN] Would move {request.source}")
                click.echo(f"       -> {request.destination}")
                yield MoveOutcome.succeeded(
                    request.source, request.destination, MoveMethod.NONE, source_deleted=False
                )
            return

        roots = self.roots if self.roots is not None else list_filesystem_roots()
        max_workers = self._calculate_max_workers()
        log.info(f"Starting batch move: {len(planned)} files, max_workers={max_workers}")

        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mover") as executor:
            active: dict[Future, MoveRequest] = {
                executor.submit(self._run_single_safe, request, roots): request
                for request in planned
            }
            while active:
                done, _ = wait(active.keys(), timeout=5.0, return_when=FIRST_COMPLETED)
                for future in done:
                    active.pop(future)
                    yield future.result()

    def run_batch(self, requests: Sequence[MoveRequest]) -> BatchResult:
        """Move every requested file and collect the per-task outcomes.

        Args:
            requests: (source, destination) pairs to move

        Returns:
            BatchResult with counts and the outcome of every task
        """
        if not requests:
            log.warning("No files to move")
            return BatchResult(completed=0, failed=0, total=0)

        outcomes: list[MoveOutcome] = []
        for outcome in self.iter_outcomes(requests):
            outcomes.append(outcome)
            if outcome.success:
                log.info(f"Completed: {outcome.source.name}")
            else:
                log.error(f"Failed: {outcome.source.name} ({outcome.reason.value})")

        if self.cancelled:
            log.warning("Batch cancelled; tasks not finished were reported as cancelled")

        completed = sum(1 for o in outcomes if o.success)
        self._display_summary(outcomes, len(requests))

        return BatchResult(
            completed=completed,
            failed=len(outcomes) - completed,
            total=len(requests),
            outcomes=outcomes,
        )

    def _run_single_safe(self, request: MoveRequest, roots: Sequence[str]) -> MoveOutcome:
        """Run one relocation; unexpected exceptions become copy_failed."""
        notifier = self.notifier_factory(request)
        try:
            # Preferences are read per task so a config change applies
            # to tasks that have not started yet
            return relocate(
                request.source,
                request.destination,
                notifier,
                touch_ancestors=self.config.touch_ancestors,
                roots=roots,
                chunk_size=self.config.copy_chunk_size,
                cancel_event=self._cancel,
                remove_empty_dirs=self.config.remove_empty_dirs,
                episode=request.episode,
            )
        except Exception as e:
            log.error(f"Error moving {request.source.name}: {e}")
            return MoveOutcome.failed(
                request.source, request.destination, FailureReason.COPY_FAILED
            )

    def _check_disjoint(self, requests: Sequence[MoveRequest]) -> None:
        counts = Counter(_destination_key(r.destination) for r in requests)
        for key, count in counts.items():
            if count > 1:
                raise DuplicateDestinationError(key, count)

    def _calculate_max_workers(self) -> int:
        """Worker threads: configured value, or auto from CPU count (max 4)."""
        if self.config.max_parallel_moves > 0:
            max_workers = self.config.max_parallel_moves
            log.debug(f"Using configured max_parallel_moves: {max_workers}")
        else:
            cpu_count = os.cpu_count() or 1
            max_workers = max(1, min(4, cpu_count))
            log.debug(f"Auto-calculated max_workers: {max_workers} (cpu_count={cpu_count})")
        return max_workers

    def _display_summary(self, outcomes: list[MoveOutcome], total: int) -> None:
        completed = [o for o in outcomes if o.success]
        failed = [o for o in outcomes if not o.success]

        click.echo(
            f"\nBatch move complete: "
            f"{len(completed)}/{total} succeeded, {len(failed)} failed"
        )

        leftovers = [o for o in completed if o.method == MoveMethod.COPY and not o.source_deleted]
        if leftovers:
            click.echo("\nCopied, but source could not be deleted:")
            for outcome in leftovers:
                click.echo(f"  - {outcome.source}")

        if failed:
            click.echo("\nFailed moves:")
            for outcome in failed:
                click.echo(f"  - {outcome.source.name} ({outcome.reason.value})")
