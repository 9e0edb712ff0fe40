"""Tests for config.py -- defaults, env var overrides."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from episode_mover.config import MoverConfig

# Env vars that pydantic-settings reads -- must be cleaned for default tests
_CONFIG_ENV_VARS = [
    "DEST_DIR", "LOG_DIR", "LOCK_DIR", "MAX_PARALLEL_MOVES", "TOUCH_ANCESTORS",
    "REMOVE_EMPTY_DIRS", "COPY_CHUNK_SIZE", "REPLACEMENT_MASK", "SEASON_PREFIX",
    "DRY_RUN", "VERBOSE", "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove mover env vars so defaults tests see actual defaults."""
    for var in _CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestDefaults:
    def test_default_values(self):
        config = MoverConfig(_env_file=None)
        assert config.max_parallel_moves == 0
        assert config.touch_ancestors is False
        assert config.remove_empty_dirs is False
        assert config.copy_chunk_size == 32768
        assert config.dry_run is False
        assert config.verbose is False
        assert config.log_level == "INFO"

    def test_default_naming(self):
        config = MoverConfig(_env_file=None)
        assert config.replacement_mask == "%S [%sx%0e] %t"
        assert config.season_prefix == "Season "

    def test_default_paths(self):
        config = MoverConfig(_env_file=None)
        assert config.dest_dir == Path.home() / "TV"
        assert config.log_dir == Path.home() / ".episode-mover" / "logs"
        assert config.lock_dir == Path.home() / ".episode-mover" / "locks"


class TestOverrides:
    def test_constructor_override(self):
        config = MoverConfig(_env_file=None, dry_run=True, max_parallel_moves=2)
        assert config.dry_run is True
        assert config.max_parallel_moves == 2

    def test_env_var_override(self, monkeypatch):
        monkeypatch.setenv("TOUCH_ANCESTORS", "true")
        monkeypatch.setenv("COPY_CHUNK_SIZE", "65536")
        config = MoverConfig(_env_file=None)
        assert config.touch_ancestors is True
        assert config.copy_chunk_size == 65536

    def test_path_from_env(self, monkeypatch):
        monkeypatch.setenv("DEST_DIR", "/tmp/test-tv")
        config = MoverConfig(_env_file=None)
        assert config.dest_dir == Path("/tmp/test-tv")

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SEASON_PREFIX=S\nUNRELATED_SETTING=1\n")
        config = MoverConfig(_env_file=env_file)
        assert config.season_prefix == "S"

    @pytest.mark.parametrize("value", [0, -32768])
    def test_chunk_size_must_be_positive(self, value):
        with pytest.raises(ValidationError, match="copy_chunk_size"):
            MoverConfig(_env_file=None, copy_chunk_size=value)

    def test_zero_chunk_size_from_env_rejected(self, monkeypatch):
        monkeypatch.setenv("COPY_CHUNK_SIZE", "0")
        with pytest.raises(ValidationError):
            MoverConfig(_env_file=None)

    def test_constructor_beats_env(self, monkeypatch):
        monkeypatch.setenv("DRY_RUN", "true")
        config = MoverConfig(_env_file=None, dry_run=False)
        assert config.dry_run is False


class TestEnsureDirs:
    def test_creates_all(self, tmp_path):
        config = MoverConfig(
            _env_file=None,
            dest_dir=tmp_path / "tv",
            log_dir=tmp_path / "logs",
            lock_dir=tmp_path / "locks",
        )
        config.ensure_dirs()
        assert (tmp_path / "tv").is_dir()
        assert (tmp_path / "logs").is_dir()
        assert (tmp_path / "locks").is_dir()
