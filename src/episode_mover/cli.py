"""CLI entry point for the episode mover."""

import signal
from pathlib import Path

import click
from loguru import logger

from .concurrency import LockError, acquire_library_lock
from .config import MoverConfig
from .models import MoveRequest
from .move_orchestrator import MoveOrchestrator
from .notify import EchoNotifier
from .ops.naming import build_episode_path, build_season_dir
from .sanitize import get_extension, sanitize_filename

log = logger.bind(stage="cli")


def _find_config_file() -> Path | None:
    """Look for .env next to the package or in cwd."""
    pkg_dir = Path(__file__).resolve().parent
    for candidate in [
        pkg_dir.parent.parent / ".env",  # dev: src/../.env
        Path.cwd() / ".env",
    ]:
        if candidate.is_file():
            return candidate
    return None


def _build_requests(
    sources: tuple[Path, ...],
    pairs: tuple[tuple[Path, Path], ...],
    dest_root: Path,
    config: MoverConfig,
    show: str | None,
    season: str | None,
    episode: str | None,
    title: str | None,
) -> list[MoveRequest]:
    requests: list[MoveRequest] = []
    for source in sources:
        if show and episode:
            dest = build_episode_path(
                dest_root,
                show,
                season,
                episode,
                title or "",
                get_extension(source.name),
                mask=config.replacement_mask,
                season_prefix=config.season_prefix,
            )
        elif show:
            season_dir = build_season_dir(dest_root, show, season, config.season_prefix)
            dest = season_dir / sanitize_filename(source.name)
        else:
            dest = dest_root / sanitize_filename(source.name)
        requests.append(MoveRequest(source.resolve(), dest))

    for source, dest in pairs:
        requests.append(MoveRequest(source.resolve(), dest))
    return requests


@click.command()
@click.argument(
    "sources",
    nargs=-1,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-d",
    "--dest-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Library root to move into. Defaults to DEST_DIR from config.",
)
@click.option(
    "--pair",
    "pairs",
    nargs=2,
    multiple=True,
    type=click.Path(path_type=Path),
    help="Explicit SOURCE DEST pair. Repeatable.",
)
@click.option("--show", default=None, help="Show name; files go to <show>/<season>/.")
@click.option("--season", default=None, help="Season number (requires --show).")
@click.option(
    "--episode",
    default=None,
    help="Episode number; renames a single source with the replacement mask.",
)
@click.option("--title", default=None, help="Episode title used with --episode.")
@click.option("-j", "--jobs", type=int, default=None, help="Parallel moves (0 = auto).")
@click.option(
    "--touch-ancestors",
    is_flag=True,
    help="Also bump the modified time of the destination's parent and grandparent.",
)
@click.option(
    "--remove-empty-dirs", is_flag=True, help="Remove source directories left empty."
)
@click.option("--progress", is_flag=True, help="Show per-file copy progress.")
@click.option(
    "--dry-run", is_flag=True, help="Show what would happen without doing it."
)
@click.option("--no-lock", is_flag=True, help="Skip file locking.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to .env file.",
)
def main(
    sources: tuple[Path, ...],
    dest_dir: Path | None,
    pairs: tuple[tuple[Path, Path], ...],
    show: str | None,
    season: str | None,
    episode: str | None,
    title: str | None,
    jobs: int | None,
    touch_ancestors: bool,
    remove_empty_dirs: bool,
    progress: bool,
    dry_run: bool,
    no_lock: bool,
    verbose: bool,
    config_file: str | None,
) -> None:
    """Move episode files into a TV library, renaming by show and season."""
    if not sources and not pairs:
        raise click.UsageError("Nothing to move: give SOURCES or --pair.")
    if show and season is None:
        raise click.UsageError("--show requires --season.")
    if season is not None and not show:
        raise click.UsageError("--season requires --show.")
    if episode is not None:
        if not show:
            raise click.UsageError("--episode requires --show and --season.")
        if len(sources) != 1:
            raise click.UsageError("--episode needs exactly one source file.")

    env_file = Path(config_file) if config_file else _find_config_file()
    if env_file:
        log.debug(f"Loading config from {env_file}")

    # CLI flags only override config when given
    config_kwargs: dict[str, object] = {"_env_file": env_file}
    if dest_dir is not None:
        config_kwargs["dest_dir"] = dest_dir
    if jobs is not None:
        config_kwargs["max_parallel_moves"] = jobs
    if touch_ancestors:
        config_kwargs["touch_ancestors"] = True
    if remove_empty_dirs:
        config_kwargs["remove_empty_dirs"] = True
    if dry_run:
        config_kwargs["dry_run"] = True
    if verbose:
        config_kwargs["verbose"] = True
        config_kwargs["log_level"] = "DEBUG"

    config = MoverConfig(**config_kwargs)  # type: ignore[arg-type]
    config.setup_logging()

    requests = _build_requests(
        sources, pairs, config.dest_dir, config, show, season, episode, title
    )

    try:
        lock = acquire_library_lock(
            config.lock_dir, config.dest_dir, skip=no_lock or config.dry_run
        )
    except LockError as e:
        raise click.ClickException(str(e))

    orchestrator = MoveOrchestrator(
        config,
        notifier_factory=(lambda r: EchoNotifier(r.source.name)) if progress else None,
    )

    log.info(
        f"Starting mover: {len(requests)} files dest_dir={config.dest_dir} "
        f"dry_run={config.dry_run}"
    )

    # Ctrl-C cancels at the next chunk boundary instead of killing mid-copy
    previous_handler = signal.signal(signal.SIGINT, lambda *_: orchestrator.cancel())
    try:
        result = orchestrator.run_batch(requests)
    finally:
        signal.signal(signal.SIGINT, previous_handler)
        if lock is not None:
            lock.close()

    if result.retriable:
        click.echo(f"\n{len(result.retriable)} failed move(s) may succeed if retried.")
    if result.failed:
        raise SystemExit(1)
