"""Episode Mover -- move TV episode files into a show/season library safely.

Core modules:
    config            -- Mover configuration via pydantic-settings (.env + env vars).
                         Passed explicitly to the engine and orchestrator; no global
                         preferences object.
    cli               -- Click CLI entry point. CLI flags passed as kwargs to
                         MoverConfig (no env pollution).
    move_orchestrator -- Bounded thread-pool batch mover. Versions batch duplicates
                         so no two tasks share a destination, streams per-task
                         outcomes, supports cooperative cancellation.
    metadata          -- Show -> Season -> episode title hierarchy with per-map locks,
                         plus a process-wide ShowStore cache. Absent keys return None.
    notify            -- Notifier protocol (started/progress/success/failed) and
                         null, loguru and click implementations.
    sanitize          -- Title and filename sanitization for filesystem safety
    concurrency       -- Process-wide file lock for the CLI

Subpackages:
    ops -- Relocation engine (atomic rename with copy-then-delete fallback),
           filesystem helpers, destination path building
"""
