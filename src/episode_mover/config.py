"""Mover configuration via pydantic-settings (.env + env vars)."""

import sys
from pathlib import Path

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import COPY_CHUNK_SIZE


class MoverConfig(BaseSettings):
    """All mover configuration with layered resolution:
    .env file < environment variables < constructor kwargs.

    Passed explicitly to the engine and orchestrator; preferences are read
    at call time so a changed value applies to the next task.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # -- Directories --
    dest_dir: Path = Path.home() / "TV"
    log_dir: Path = Path.home() / ".episode-mover" / "logs"
    lock_dir: Path = Path.home() / ".episode-mover" / "locks"

    # -- Parallel moves --
    max_parallel_moves: int = 0  # 0 = auto (CPU-based)

    # -- Move behavior --
    touch_ancestors: bool = False
    remove_empty_dirs: bool = False
    copy_chunk_size: int = Field(COPY_CHUNK_SIZE, gt=0)

    # -- Naming --
    replacement_mask: str = "%S [%sx%0e] %t"
    season_prefix: str = "Season "

    # -- Behavior --
    dry_run: bool = False
    verbose: bool = False
    log_level: str = "INFO"

    def ensure_dirs(self) -> None:
        """Create all required directories if they don't exist."""
        for d in (self.dest_dir, self.log_dir, self.lock_dir):
            d.mkdir(parents=True, exist_ok=True)

    def setup_logging(self) -> None:
        """Configure loguru for the mover."""
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[stage]:<12} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        logger.add(
            sys.stderr,
            format=log_format,
            level=self.log_level.upper(),
            filter=_default_extra,
        )

        self.log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self.log_dir / "mover.log"),
            format=log_format,
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            filter=_default_extra,
        )
