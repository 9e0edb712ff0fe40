"""Tests for cli.py -- Click CLI interface."""

import signal
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from loguru import logger

from episode_mover.cli import main
from episode_mover.concurrency import acquire_library_lock
from episode_mover.models import BatchResult
from episode_mover.move_orchestrator import MoveOrchestrator


@pytest.fixture(autouse=True)
def _use_tmp_dirs(tmp_path, monkeypatch):
    """Point all directory config to tmp_path so tests never touch ~/TV."""
    for var in ("DEST_DIR", "LOG_DIR", "LOCK_DIR"):
        monkeypatch.setenv(var, str(tmp_path / var.lower()))
    for var in ("DRY_RUN", "MAX_PARALLEL_MOVES", "REPLACEMENT_MASK", "SEASON_PREFIX"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _no_env_file(monkeypatch):
    """Prevent CLI from loading the project .env file."""
    monkeypatch.setattr("episode_mover.cli._find_config_file", lambda: None)


@pytest.fixture
def episode_file(tmp_path):
    src = tmp_path / "incoming" / "show.s01e02.mp4"
    src.parent.mkdir()
    src.write_bytes(b"v" * 5000)
    return src


class TestHelpOutput:
    def test_help_flag(self):
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Move episode files into a TV library" in result.output
        assert "--dest-dir" in result.output
        assert "--dry-run" in result.output
        assert "--touch-ancestors" in result.output


class TestUsageErrors:
    def test_nothing_to_move(self):
        result = CliRunner().invoke(main, [])
        assert result.exit_code == 2
        assert "Nothing to move" in result.output

    def test_show_requires_season(self, episode_file):
        result = CliRunner().invoke(main, [str(episode_file), "--show", "Show"])
        assert result.exit_code == 2
        assert "--show requires --season" in result.output

    def test_season_requires_show(self, episode_file):
        result = CliRunner().invoke(main, [str(episode_file), "--season", "1"])
        assert result.exit_code == 2

    def test_episode_needs_single_source(self, tmp_path, episode_file):
        other = tmp_path / "incoming" / "other.mp4"
        other.write_bytes(b"x")
        result = CliRunner().invoke(
            main,
            [str(episode_file), str(other), "--show", "Show", "--season", "1", "--episode", "2"],
        )
        assert result.exit_code == 2
        assert "exactly one source" in result.output

    def test_missing_source_rejected(self, tmp_path):
        result = CliRunner().invoke(main, [str(tmp_path / "nope.mp4")])
        assert result.exit_code == 2


class TestMove:
    def test_move_into_dest_dir(self, tmp_path, episode_file):
        dest_dir = tmp_path / "library"
        result = CliRunner().invoke(main, [str(episode_file), "-d", str(dest_dir)])
        assert result.exit_code == 0, result.output + str(result.exception or "")
        assert (dest_dir / "show.s01e02.mp4").stat().st_size == 5000
        assert not episode_file.exists()
        assert "Batch move complete: 1/1 succeeded, 0 failed" in result.output

    def test_dest_dir_from_env(self, tmp_path, episode_file):
        result = CliRunner().invoke(main, [str(episode_file)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "dest_dir" / "show.s01e02.mp4").exists()

    def test_show_and_season(self, tmp_path, episode_file):
        dest_dir = tmp_path / "library"
        result = CliRunner().invoke(
            main, [str(episode_file), "-d", str(dest_dir), "--show", "Show", "--season", "1"]
        )
        assert result.exit_code == 0, result.output
        assert (dest_dir / "Show" / "Season 01" / "show.s01e02.mp4").exists()

    def test_rename_with_mask(self, tmp_path, episode_file):
        dest_dir = tmp_path / "library"
        result = CliRunner().invoke(
            main,
            [
                str(episode_file), "-d", str(dest_dir),
                "--show", "Show", "--season", "1", "--episode", "2", "--title", "Title",
            ],
        )
        assert result.exit_code == 0, result.output
        assert (dest_dir / "Show" / "Season 01" / "Show [1x02] Title.mp4").exists()

    def test_mask_from_env(self, tmp_path, episode_file, monkeypatch):
        monkeypatch.setenv("REPLACEMENT_MASK", "%S - S%0sE%0e - %t")
        dest_dir = tmp_path / "library"
        result = CliRunner().invoke(
            main,
            [
                str(episode_file), "-d", str(dest_dir),
                "--show", "Show", "--season", "1", "--episode", "2", "--title", "Title",
            ],
        )
        assert result.exit_code == 0, result.output
        assert (dest_dir / "Show" / "Season 01" / "Show - S01E02 - Title.mp4").exists()

    def test_explicit_pair(self, tmp_path, episode_file):
        dest = tmp_path / "anywhere" / "renamed.mp4"
        result = CliRunner().invoke(main, ["--pair", str(episode_file), str(dest)])
        assert result.exit_code == 0, result.output
        assert dest.exists()

    def test_progress_output(self, tmp_path, episode_file):
        result = CliRunner().invoke(
            main, [str(episode_file), "-d", str(tmp_path / "library"), "--progress"]
        )
        assert result.exit_code == 0, result.output
        assert "Moving show.s01e02.mp4" in result.output
        assert "OK show.s01e02.mp4" in result.output

    def test_remove_empty_dirs(self, tmp_path, episode_file):
        result = CliRunner().invoke(
            main, [str(episode_file), "-d", str(tmp_path / "library"), "--remove-empty-dirs"]
        )
        assert result.exit_code == 0, result.output
        assert not (tmp_path / "incoming").exists()

    def test_failure_exit_code(self, tmp_path, episode_file):
        (tmp_path / "blocked").write_text("file in the way")
        result = CliRunner().invoke(
            main, ["--pair", str(episode_file), str(tmp_path / "blocked" / "ep.mp4")]
        )
        assert result.exit_code == 1
        assert "Failed moves:" in result.output
        assert "destination_unwritable" in result.output
        assert episode_file.exists()


class TestDryRun:
    def test_dry_run_moves_nothing(self, tmp_path, episode_file):
        dest_dir = tmp_path / "library"
        result = CliRunner().invoke(main, [str(episode_file), "-d", str(dest_dir), "--dry-run"])
        assert result.exit_code == 0, result.output
        assert "[DRY-RUN] Would move" in result.output
        assert episode_file.exists()
        assert not dest_dir.exists()


class TestLocking:
    def test_lock_held_fails(self, tmp_path, episode_file):
        held = acquire_library_lock(tmp_path / "lock_dir", tmp_path / "dest_dir")
        try:
            result = CliRunner().invoke(main, [str(episode_file)])
        finally:
            held.close()
        assert result.exit_code == 1
        assert "Another mover instance is running on" in result.output
        assert episode_file.exists()

    def test_other_library_not_blocked(self, tmp_path, episode_file):
        held = acquire_library_lock(tmp_path / "lock_dir", tmp_path / "dest_dir")
        try:
            result = CliRunner().invoke(
                main, [str(episode_file), "-d", str(tmp_path / "library")]
            )
        finally:
            held.close()
        assert result.exit_code == 0, result.output
        assert (tmp_path / "library" / episode_file.name).exists()

    def test_no_lock_ignores_held_lock(self, tmp_path, episode_file):
        held = acquire_library_lock(tmp_path / "lock_dir", tmp_path / "dest_dir")
        try:
            result = CliRunner().invoke(main, [str(episode_file), "--no-lock"])
        finally:
            held.close()
        assert result.exit_code == 0, result.output


class TestInterrupt:
    def test_sigint_cancels_without_logging(self, episode_file):
        handlers = []
        records = []

        def fake_signal(signum, handler):
            handlers.append(handler)
            return signal.SIG_DFL

        def fake_run_batch(self, requests):
            sink_id = logger.add(lambda m: records.append(m.record), level="DEBUG")
            try:
                handlers[0](signal.SIGINT, None)
            finally:
                logger.remove(sink_id)
            assert self.cancelled
            return BatchResult(completed=0, failed=0, total=len(requests))

        with patch("episode_mover.cli.signal.signal", side_effect=fake_signal), patch.object(
            MoveOrchestrator, "run_batch", fake_run_batch
        ):
            result = CliRunner().invoke(main, [str(episode_file)])

        assert result.exit_code == 0, result.output + str(result.exception or "")
        assert records == []
        # Handler installed, then the previous one restored
        assert len(handlers) == 2
        assert handlers[1] is signal.SIG_DFL
