"""File operations for the episode mover.

Submodules:
    relocate -- The relocation engine. Creates the destination directory,
                renames atomically (os.replace) when source and destination
                share a filesystem root, otherwise (or when the rename fails)
                streams 32 KiB chunks with progress callbacks and deletes the
                source. Cancellation stops between chunks and leaves the
                partial destination in place. Source deletion failure is
                logged, not fatal. Touches timestamps after success.
    paths    -- Filesystem root enumeration (psutil), the longest-root-prefix
                same-disk heuristic, destination writability checks,
                timestamp touch-up, and emptied-directory cleanup.
    naming   -- Replacement-mask expansion (%S %s %0s %e %0e %t %T) and
                Show/Season NN/<name> destination paths. Builds versioned
                paths for batch duplicates.
"""
